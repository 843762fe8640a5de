"""Tests for the two-phase state projection."""

from __future__ import annotations

import json
from unittest.mock import patch

from conftest import dataset_payload, region_payload

from pollenflug.errors import PersistenceError
from pollenflug.project import (
    bucket_summary,
    ensure_schema,
    index_summary,
    project,
    species_by_bucket,
    write_values,
)
from pollenflug.schemas import Day, Locale, RawDataset, RawRegionEntry
from pollenflug.store import ObjectKind, ObjectStore
from pollenflug.translate import IMAGE_BASE_URL, risk_text


class TestSummaries:
    """Tests for the pure summary helpers."""

    def test_index_summary_skips_unknown(self, multi_dataset: RawDataset) -> None:
        entry = multi_dataset.content[1]  # Erle today is "-1"
        summary = index_summary(entry, Day.TODAY)
        assert summary == [
            {"Pollen": "Hasel", "Riskindex": 4, "Riskindextext": "medium pollen concentration"}
        ]

    def test_index_summary_german(self, birke_dataset: RawDataset) -> None:
        summary = index_summary(birke_dataset.content[0], Day.TOMORROW, Locale.DE)
        assert summary == [
            {"Pollen": "Birke", "Riskindex": 3, "Riskindextext": "geringe bis mittlere Belastung"}
        ]

    def test_species_by_bucket(self) -> None:
        entry = RawRegionEntry.model_validate(
            region_payload(
                1,
                pollen={
                    "Hasel": {"today": "1"},
                    "Erle": {"today": "1"},
                    "Birke": {"today": "3"},
                    "Esche": {"today": "?"},
                },
            )
        )
        buckets = species_by_bucket(entry, Day.TODAY)
        assert list(buckets) == [0, 1, 2, 3, 4, 5, 6]
        assert buckets[2] == ["Hasel", "Erle"]
        assert buckets[6] == ["Birke"]
        assert all("Esche" not in names for names in buckets.values())

    def test_bucket_summary_always_seven(self) -> None:
        entry = RawRegionEntry.model_validate(region_payload(1))
        summary = bucket_summary(entry, Day.TODAY)
        assert [b["Riskindex"] for b in summary] == list(range(7))
        assert all(b["Pollen"] == "" for b in summary)
        assert summary[0]["Riskindextext"] == "not any pollen concentration"
        assert summary[3]["Riskindextext"] == "high pollen concentration"
        assert summary[6]["Riskindextext"] == "no data available"

    def test_bucket_summary_texts_german(self) -> None:
        entry = RawRegionEntry.model_validate(region_payload(1))
        texts = [b["Riskindextext"] for b in bucket_summary(entry, Day.TODAY, Locale.DE)]
        assert texts == [risk_text(str(n), locale=Locale.DE) for n in range(7)]
        assert texts[1] == "geringe Belastung"

    def test_bucket_summary_joins_names(self) -> None:
        entry = RawRegionEntry.model_validate(
            region_payload(1, pollen={"Hasel": {"today": "2"}, "Erle": {"today": "2"}})
        )
        assert bucket_summary(entry, Day.TODAY)[4]["Pollen"] == "Hasel, Erle"


class TestEnsureSchema:
    """Tests for phase 1."""

    def test_region_tree(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        ensure_schema(objects, birke_dataset.content)

        assert objects.get_object("region#31") == {
            "type": "device",
            "common": {"name": "Bayern"},
            "native": {},
        }
        assert set(objects.list_children("region#31", ObjectKind.CHANNEL)) == {
            "region#31.summary",
            "region#31.riskindex_today",
            "region#31.riskindex_tomorrow",
            "region#31.Birke",
        }
        assert set(objects.list_children("region#31.Birke")) == {
            "region#31.Birke.index_today",
            "region#31.Birke.text_today",
            "region#31.Birke.index_tomorrow",
            "region#31.Birke.text_tomorrow",
        }
        assert objects.get_object("region#31.Birke.index_today")["common"]["type"] == "number"
        assert len(objects.list_children("region#31.riskindex_today")) == 7

    def test_no_day_after_tomorrow(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        ensure_schema(objects, birke_dataset.content)
        assert not [o for o in objects.objects if "dayafter" in o]

    def test_permanent_devices(self) -> None:
        objects = ObjectStore()
        ensure_schema(objects, [])
        assert objects.list_children("") == ["info", "images"]
        assert objects.list_children("info") == ["info.today", "info.tomorrow"]
        assert objects.get_object("info.today")["common"]["role"] == "date"

    def test_images_per_species_seen(self, multi_dataset: RawDataset) -> None:
        objects = ObjectStore()
        ensure_schema(objects, multi_dataset.content)
        assert objects.list_children("images") == [
            "images.Hasel",
            "images.Erle",
            "images.Birke",
        ]
        image = objects.get_object("images.Birke.image_tomorrow")
        assert image["common"]["role"] == "weather.chart.url"

    def test_idempotent(self, multi_dataset: RawDataset) -> None:
        objects = ObjectStore()
        created = ensure_schema(objects, multi_dataset.content)
        assert created > 0
        snapshot = dict(objects.objects)
        assert ensure_schema(objects, multi_dataset.content) == 0
        assert objects.objects == snapshot

    def test_keeps_existing_descriptor(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        objects.ensure_exists("region#31", {"type": "device", "common": {"name": "Custom"}})
        ensure_schema(objects, birke_dataset.content)
        assert objects.get_object("region#31")["common"]["name"] == "Custom"

    def test_create_failure_does_not_abort(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        original = objects.ensure_exists

        def flaky(obj_id: str, descriptor: dict[str, object]) -> bool:
            if obj_id == "region#31.summary":
                raise PersistenceError("disk full")
            return original(obj_id, descriptor)

        with patch.object(objects, "ensure_exists", side_effect=flaky):
            ensure_schema(objects, birke_dataset.content)
        assert objects.get_object("region#31.summary") is None
        assert objects.get_object("region#31.Birke.index_today") is not None


class TestWriteValues:
    """Tests for phase 2 and the end-to-end projection."""

    def test_birke_scenario(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, birke_dataset.content, birke_dataset.last_update)

        assert objects.read("region#31.Birke.index_today") == 6
        assert objects.read("region#31.Birke.index_tomorrow") == 3
        assert objects.read("region#31.Birke.text_today") == "high pollen concentration for Birke"

        buckets = json.loads(objects.read("region#31.summary.json_riskindex_today"))
        assert len(buckets) == 7
        assert buckets[6]["Pollen"] == "Birke"
        assert buckets[6]["Riskindex"] == 6
        assert all(b["Pollen"] == "" for b in buckets[:6])

    def test_birke_scenario_german(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, birke_dataset.content, birke_dataset.last_update, Locale.DE)
        assert objects.read("region#31.Birke.text_today") == "hohe Belastung für Birke"

    def test_index_list(self, multi_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, multi_dataset.content, multi_dataset.last_update)
        summary = json.loads(objects.read("region#12.summary.json_index_today"))
        assert [s["Pollen"] for s in summary] == ["Hasel"]
        assert all(s["Riskindex"] >= 0 for s in summary)
        assert objects.read("region#12.Erle.index_today") == -1
        assert objects.read("region#12.Erle.text_today") == "no data available for Erle"

    def test_riskindex_slots(self, multi_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, multi_dataset.content, multi_dataset.last_update)
        assert objects.read("region#11.riskindex_today.riskindex_0") == "Hasel"
        assert objects.read("region#11.riskindex_today.riskindex_2") == "Erle"
        assert objects.read("region#11.riskindex_tomorrow.riskindex_1") == "Hasel"
        assert objects.read("region#11.riskindex_today.riskindex_6") == ""

    def test_images(self, multi_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, multi_dataset.content, multi_dataset.last_update)
        assert objects.read("images.Birke.image_today") == f"{IMAGE_BASE_URL}pollen_1_2.png"
        assert objects.read("images.Hasel.image_tomorrow") == f"{IMAGE_BASE_URL}pollen_2_0.png"

    def test_images_written_once_per_cycle(self, multi_dataset: RawDataset) -> None:
        objects = ObjectStore()
        ensure_schema(objects, multi_dataset.content)
        with patch.object(objects, "write", wraps=objects.write) as spy:
            write_values(objects, multi_dataset.content, multi_dataset.last_update)
        image_writes = [c.args[0] for c in spy.call_args_list if c.args[0].startswith("images.")]
        assert len(image_writes) == len(set(image_writes)) == 6

    def test_info_dates(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, birke_dataset.content, birke_dataset.last_update)
        assert objects.read("info.today") == "2019-02-21"
        assert objects.read("info.tomorrow") == "2019-02-22"

    def test_malformed_last_update_keeps_other_writes(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        stats = project(objects, birke_dataset.content, "soon")
        assert objects.read("info.today") is None
        assert objects.read("region#31.Birke.index_today") == 6
        assert stats.failed == 0

    def test_values_overwritten_next_cycle(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        project(objects, birke_dataset.content, birke_dataset.last_update)
        update = RawDataset.model_validate(
            dataset_payload(
                region_payload(31, region_name="Bayern", pollen={"Birke": {"today": "0", "tomorrow": "0"}}),
                last_update="2019-02-22 11:00 Uhr",
            )
        )
        project(objects, update.content, update.last_update)
        assert objects.read("region#31.Birke.index_today") == 0
        assert objects.read("info.today") == "2019-02-22"

    def test_write_failure_counted(self, birke_dataset: RawDataset) -> None:
        objects = ObjectStore()
        # schema never created: every write fails, none raise
        stats = write_values(objects, birke_dataset.content, birke_dataset.last_update)
        assert stats.written == 0
        assert stats.failed > 0
