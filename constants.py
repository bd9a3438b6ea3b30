# ! Fire-hose pressure calculator: global constants and default parameters
# * Every module reads its physical constants and thresholds from this file.

# ──────────────────────────────────────────────
# ? Hydrostatics (simplified: 1 bar per 10 m of water head)
# ──────────────────────────────────────────────
METERS_PER_BAR = 10.0

# ──────────────────────────────────────────────
# ? Hose friction
# ──────────────────────────────────────────────
HAZEN_WILLIAMS_C = 120.0          # roughness coefficient for fire hose
HAZEN_WILLIAMS_K = 10.67          # SI constant of the head-loss form
HAZEN_WILLIAMS_Q_EXP = 1.852
HAZEN_WILLIAMS_D_EXP = 4.87
HOSE_SECTION_LENGTH_M = 20.0      # hoses are laid in fixed 20 m sections
REFERENCE_FLOW_LPM = 500.0        # flow at which catalog coefficients are quoted

# ──────────────────────────────────────────────
# ? Network flow estimation
#   key = terminal equipment id, value = typical flow (l/min)
# ──────────────────────────────────────────────
DEFAULT_FLOW_RATE_LPM = 500.0
TYPICAL_FLOW_RATES = {
    "terminal-cannon": 1000.0,    # middle of the 500-2000 l/min range
    "terminal-wall": 300.0,       # middle of the 200-400 l/min range
}

# ──────────────────────────────────────────────
# ? Pressure status thresholds (bar)
# ──────────────────────────────────────────────
DEFAULT_MIN_PRESSURE_BAR = 6.0    # used when no terminal minimum applies
NON_TERMINAL_MIN_PRESSURE_BAR = 2.0
STATUS_GOOD_MARGIN_BAR = 2.0      # good = min + margin, ok = min, else low

# ──────────────────────────────────────────────
# ? Equipment catalog
#   type-specific fields follow the dataclasses in equipment.py
# ──────────────────────────────────────────────
EQUIPMENT_DATA = [
    # Source
    {"id": "source", "type": "source",
     "name_key": "equipment.source", "desc_key": "equipment.sourceDesc"},

    # Pumps
    {"id": "pump-ziegler", "type": "pump",
     "name_key": "equipment.ziegler", "desc_key": "equipment.zieglerDesc",
     "max_pressure": 10.0, "max_flow": 3000.0},
    {"id": "pump-otter", "type": "pump",
     "name_key": "equipment.otter", "desc_key": "equipment.otterDesc",
     "max_pressure": 10.0, "max_flow": 800.0},

    # Hoses (20 m sections, coefficient = bar per section at 500 l/min)
    {"id": "hose-1.5", "type": "hose",
     "name_key": "equipment.hose1_5", "desc_key": "equipment.hose1_5Desc",
     "diameter": 38.0, "diameter_label": "1½\"", "length": 20.0,
     "friction_coefficient": 0.5},
    {"id": "hose-2.5", "type": "hose",
     "name_key": "equipment.hose2_5", "desc_key": "equipment.hose2_5Desc",
     "diameter": 65.0, "diameter_label": "2½\"", "length": 20.0,
     "friction_coefficient": 0.15},
    {"id": "hose-4", "type": "hose",
     "name_key": "equipment.hose4", "desc_key": "equipment.hose4Desc",
     "diameter": 102.0, "diameter_label": "4\"", "length": 20.0,
     "friction_coefficient": 0.02},

    # Connectors
    {"id": "splitter-2", "type": "connector",
     "name_key": "equipment.splitter2", "desc_key": "equipment.splitter2Desc",
     "inputs": 1, "outputs": 2, "pressure_loss": 0.2},
    {"id": "splitter-3", "type": "connector",
     "name_key": "equipment.splitter3", "desc_key": "equipment.splitter3Desc",
     "inputs": 1, "outputs": 3, "pressure_loss": 0.3},

    # Terminals
    {"id": "terminal-cannon", "type": "terminal",
     "name_key": "equipment.waterCannon", "desc_key": "equipment.waterCannonDesc",
     "min_pressure": 6.0, "max_pressure": 8.0, "min_flow": 500.0, "max_flow": 2000.0},
    {"id": "terminal-wall", "type": "terminal",
     "name_key": "equipment.fireWall", "desc_key": "equipment.fireWallDesc",
     "min_pressure": 4.0, "max_pressure": 6.0, "min_flow": 200.0, "max_flow": 400.0},
]

# ──────────────────────────────────────────────
# ? Initial layout (what a fresh editor canvas holds)
# ──────────────────────────────────────────────
DEFAULT_SOURCE_POSITION = (100.0, 150.0)
DEFAULT_TERMINAL_POSITION = (500.0, 150.0)
DEFAULT_SOURCE_ELEVATION_M = 0.0
DEFAULT_TERMINAL_ELEVATION_M = 100.0

# ──────────────────────────────────────────────
# ? Critical flow search (brentq bracket, l/min)
# ──────────────────────────────────────────────
CRITICAL_FLOW_MIN_LPM = 1.0
CRITICAL_FLOW_MAX_LPM = 6000.0
CRITICAL_FLOW_XTOL_LPM = 0.1
