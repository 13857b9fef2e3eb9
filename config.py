"""
AutoDrive Configuration
All tunable parameters for the self-driving evolution simulation.
"""

import math

# ─── Road ─────────────────────────────────────────────────────────────────────
ROAD_CENTER_X  = 100        # x of the road's centre line
ROAD_WIDTH     = 180        # kerb to kerb
LANE_COUNT     = 3
ROAD_EXTENT    = 1_000_000  # borders run from -EXTENT to +EXTENT in y

# ─── Car / Vehicle dynamics ───────────────────────────────────────────────────
CAR_WIDTH          = 30
CAR_HEIGHT         = 50
ACCELERATION       = 0.2
FRICTION           = 0.05
TURN_RATE          = 0.03   # radians per tick
STEER_MIN_SPEED    = 0.5    # steering disabled at or below this |speed|
AI_MAX_SPEED       = 2.0
SPAWN_Y            = 100
CONTROL_THRESHOLD  = 0.5    # analog steering value counts as "pressed" above this

# ─── Sensor ───────────────────────────────────────────────────────────────────
RAY_COUNT          = 8              # forward fan
BACK_RAY_COUNT     = 4              # backward fan
RAY_LENGTH         = 150
RAY_SPREAD         = math.pi * 0.75 # 135° forward
BACK_RAY_SPREAD    = math.pi * 0.5  # 90° backward
BACK_RAY_FACTOR    = 0.6            # backward rays are shorter
BACK_ANGLE_MARKER  = -1.5           # normalised angle fed for every backward ray

# ─── Neural Network ───────────────────────────────────────────────────────────
HIDDEN_NODES   = 16
NUM_OUTPUTS    = 4
WEIGHT_RANGE   = 1.0        # weights / biases drawn from U[-R, R]
NUM_INPUTS     = 2 * (RAY_COUNT + BACK_RAY_COUNT)
NETWORK_SHAPE  = [NUM_INPUTS, HIDDEN_NODES, NUM_OUTPUTS]

# Output index → meaning
OUTPUT_LABELS = {
    0: "forward",
    1: "left",
    2: "right",
    3: "reverse",
}

# Initial output thresholds: low on forward so it fires easily,
# high on reverse so it rarely does.
OUTPUT_BIAS_SEED = (-2.0, 0.5, 0.5, 2.0)

NETWORK_FORMAT_VERSION = 1

# ─── Training ─────────────────────────────────────────────────────────────────
POPULATION        = 20      # AI cars per generation
MUTATION_RATE     = 0.2
MAX_GENERATIONS   = 50      # used by the headless CLI
MAX_TICKS_PER_GEN = 3000    # headless safety cap; a generation normally ends at die-off
SAVE_MIN_FITNESS  = 50      # best brain is only persisted above this
SPEED_WEIGHT      = 5       # fitness points per unit of speed
OVERTAKE_WEIGHT   = 20      # fitness points per traffic car passed

# ─── Traffic ──────────────────────────────────────────────────────────────────
TRAFFIC_COUNT         = 20
TRAFFIC_SPACING       = 200
TRAFFIC_START_Y       = -300
TRAFFIC_JITTER        = 200
TRAFFIC_MIN_SPEED     = 1.0   # max speed drawn from [MIN, MIN + 1)
TRAFFIC_REGEN_TICKS   = 100
TRAFFIC_REGEN_BATCH   = 5
TRAFFIC_PRUNE_Y       = 500   # cars with y >= this are dropped

# ─── Output / Storage ─────────────────────────────────────────────────────────
SAVE_DIR           = "output"          # charts, snapshots, csv
BRAIN_STORE_PATH   = "brains.json"     # persisted networks + training stats
SNAPSHOT_INTERVAL  = 10                # save a road snapshot every N generations
SAVE_NETWORK_DIAGRAM = True
LOG_CSV            = True
