"""Constants for the Crew Schedule integration."""
from __future__ import annotations

DOMAIN = "crew_schedule"
PLATFORMS = ["sensor"]

# Config / options keys
CONF_URL = "url"
CONF_USER_ID = "user_id"
CONF_TRACKED_DAY = "tracked_day"
CONF_SCAN_INTERVAL = "scan_interval"
CONF_SYNC_BUDGET = "sync_budget"
CONF_REQUEST_TIMEOUT = "request_timeout"

DEFAULT_URL = "https://crewshift.virtuslabs.lol/schedule"
DEFAULT_SCAN_INTERVAL = 30  # minutes
DEFAULT_SYNC_BUDGET = 25  # seconds
DEFAULT_REQUEST_TIMEOUT = 20  # seconds

STORAGE_VERSION = 1
STORAGE_KEY = f"{DOMAIN}.schedule"

# Services
SERVICE_SYNC_NOW = "sync_now"
SERVICE_ACKNOWLEDGE_CHANGES = "acknowledge_changes"
SERVICE_SET_TRACKED_DAY = "set_tracked_day"

# Dispatcher signal, formatted with the config entry id
SIGNAL_STATE_UPDATED = f"{DOMAIN}_state_updated_{{}}"

# Wire vocabulary (external field names)
WIRE_SCHEDULE = "schedule"
WIRE_PRODUCED_AT = "produced_at"

WIRE_DAY_KEY = "IndividualDay"
WIRE_DATE = "Date"
WIRE_DUTY = "Duty"
WIRE_FLIGHTS = "Flights"
WIRE_BLOCK_HOURS = "FT_BLH"
WIRE_FLIGHT_DUTY_TIME = "FDT"
WIRE_DUTY_TIME = "DT"
WIRE_REST_PERIOD = "RP"

WIRE_DEPARTURE = "Departure"
WIRE_ARRIVAL = "Arrival"
WIRE_DEP_TIME = "DepTime"
WIRE_ARRIVAL_TIME = "ArrivalTime"
WIRE_CHECK_IN = "CheckIn"
WIRE_CHECK_OUT = "CheckOut"
WIRE_AIRCRAFT = "Aircraft"
WIRE_COCKPIT = "Cockpit"
WIRE_CABIN = "Cabin"

DUTY_DAY_OFF = "Day Off"
