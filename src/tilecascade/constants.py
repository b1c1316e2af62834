GRID_SIZE = 7
MIN_GRID_SIZE = 3
MIN_RUN_LENGTH = 3

# A single run of at least this length sweeps every obstacle off the board.
OBSTACLE_CLEAR_RUN_LENGTH = 5

# Obstacle density ramps up by OBSTACLE_RAMP per level above 1, capped at OBSTACLE_MAX_PROBABILITY.
OBSTACLE_RAMP = 0.05
OBSTACLE_MAX_PROBABILITY = 0.2

OBSTACLE_TYPE = 'obstacle'

# Safety net for chain reactions; a real board settles long before this.
MAX_CASCADE_DEPTH = 100
MAX_RESHUFFLE_ATTEMPTS = 200

# Progression tuning consumed by the scoring collaborator.
SCORE_PER_TILE = 25
SCORE_OBSTACLE_BONUS = 500
SCORE_LEVEL_BONUS = 5000
STABILITY_PER_TILE = 2
STABILITY_OBSTACLE_BONUS = 20
STABILITY_MAX = 100
INITIAL_REQUIRED_TARGET = 8
REQUIRED_TARGET_PER_LEVEL = 4

# Collection target cycles through the elemental types as levels advance.
TARGET_ROTATION = ('gravity', 'force', 'mass', 'velocity', 'acceleration')
