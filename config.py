"""
Global configuration and constants for the Tag Likelihood Surface engine.
"""

# --- Ocean Heat Content ---
HEAT_CAPACITY_SEAWATER = 3.993   # kJ/(kg*C)
SEAWATER_DENSITY = 1025.0        # kg/m^3 (assumed constant)
OHC_UNIT_DIVISOR = 10000.0       # Scales cp * rho * sum(dT) into kJ/cm^2-like units

# --- Envelope Regression ---
LOCAL_FIT_SPAN = 0.7             # Nearest-neighbour fraction of points inside each local window
LOCAL_FIT_DEGREE = 2             # Local polynomial degree (reduced automatically for few depths)
BANDWIDTH_PAD = 1.1              # Keeps the k-th neighbour inside the tricube window

# --- Run Defaults ---
DEFAULT_BATHY_MASK = True        # Exclude cells shallower than the deepest observed depth
DEFAULT_USE_SE = True            # Widen predicted bounds by +/- se * sqrt(n)
DEFAULT_SENSOR_ERROR_PCT = 1.0   # Percent error of the tag temperature sensor

# --- Spatial Uncertainty ---
OHC_SD_WINDOW = 9                # Sliding window (cells) for heat-content local SD
SST_SD_WINDOW = 3                # Sliding window (cells) for SST local SD

# --- Likelihood Integration ---
MAX_UNDEFINED_FRACTION = 0.5     # Fraction of defined reference cells allowed to fail before the call fails

# --- Georeferencing ---
GEOGRAPHIC_CRS = "+proj=longlat +datum=WGS84 +ellps=WGS84"
LONGITUDE_WRAP_DEG = 360.0       # Shift applied to 0-360 longitude grids

# --- Synthetic Deployment (demo data + viewer) ---
DEMO_START_DATE = "2015-06-01"
DEMO_NUM_DAYS = 10
DEMO_LON_RANGE = (280.0, 290.0)          # HYCOM-style 0-360 longitudes
DEMO_LAT_RANGE = (30.0, 40.0)
DEMO_RESOLUTION_DEG = 0.25
DEMO_DEPTH_LEVELS = [0, 2, 4, 6, 8, 10, 12, 15, 20, 25, 30, 35, 40, 45, 50, 60,
                     70, 80, 90, 100, 125, 150, 200, 250, 300, 350, 400, 500]
DEMO_TRACK_START = (284.0, 33.0)         # (lon, lat) of the simulated animal on day 0
DEMO_TRACK_STEP = (0.35, 0.25)           # Daily displacement (deg lon, deg lat)
DEMO_SEED = 42
