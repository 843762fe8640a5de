"""DWD open-data constants.

Dataset docs:
  - https://opendata.dwd.de/climate_environment/health/alerts/Beschreibung_pollen_s31fg.pdf
"""

from pollenflug.config import DEFAULT_URL

DWD_POLLEN_URL = DEFAULT_URL
DWD_SOURCE = "opendata.dwd.de"
