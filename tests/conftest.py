"""Shared fixtures: small DWD-shaped datasets."""

from __future__ import annotations

from typing import Any

import pytest

from pollenflug.schemas import RawDataset


def region_payload(
    region_id: int | str,
    partregion_id: int | str = -1,
    pollen: dict[str, dict[str, str]] | None = None,
    region_name: str = "Region",
    partregion_name: str = "",
) -> dict[str, Any]:
    """Build one raw ``content`` entry as DWD serves it."""
    return {
        "region_id": region_id,
        "region_name": region_name,
        "partregion_id": partregion_id,
        "partregion_name": partregion_name,
        "Pollen": pollen or {},
    }


def dataset_payload(*regions: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Pollenflug-Gefahrenindex für Deutschland ausgegeben vom Deutschen Wetterdienst",
        "sender": "Deutscher Wetterdienst - Medizin-Meteorologie",
        "last_update": "2019-02-21 11:00 Uhr",
        "next_update": "2019-02-22 11:00 Uhr",
        "content": list(regions),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def birke_dataset() -> RawDataset:
    """Single region 31 with Birke high today, low-medium tomorrow."""
    return RawDataset.model_validate(
        dataset_payload(
            region_payload(
                31,
                region_name="Bayern",
                pollen={"Birke": {"today": "3", "tomorrow": "1-2", "dayafter_to": "1"}},
            )
        )
    )


@pytest.fixture
def multi_dataset() -> RawDataset:
    """Two part-regions of region 10 and one plain region 31."""
    return RawDataset.model_validate(
        dataset_payload(
            region_payload(
                10,
                partregion_id=11,
                region_name="Schleswig-Holstein und Hamburg",
                partregion_name="Inseln und Marschen",
                pollen={
                    "Hasel": {"today": "0", "tomorrow": "0-1", "dayafter_to": "0"},
                    "Erle": {"today": "1", "tomorrow": "1", "dayafter_to": "1"},
                },
            ),
            region_payload(
                10,
                partregion_id=12,
                region_name="Schleswig-Holstein und Hamburg",
                partregion_name="Geest,Schleswig-Holstein und Hamburg",
                pollen={
                    "Hasel": {"today": "2", "tomorrow": "2-3", "dayafter_to": "3"},
                    "Erle": {"today": "-1", "tomorrow": "2", "dayafter_to": "2"},
                },
            ),
            region_payload(
                "31",
                region_name="Bayern",
                pollen={"Birke": {"today": "3", "tomorrow": "1-2", "dayafter_to": "1"}},
            ),
        )
    )
