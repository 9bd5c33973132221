from pathlib import Path

import yaml

BASE_DIR = Path(__file__).resolve().parent

TRAIN_PATH = BASE_DIR / "data" / "pml-training.csv"
TEST_PATH = BASE_DIR / "data" / "pml-testing.csv"
OUTPUT_DIR = BASE_DIR / "predictions"

# Strings the sensor export uses for "no value"
NA_VALUES = ["NA", "#DIV/0!", ""]

LABEL_COL = "classe"
CATEGORICAL_COLUMNS = ["user_name", "new_window", "classe"]

# Row number and recording timestamps identify samples, they do not describe the movement
EXCLUDE_COLUMNS = [
    "X",
    "raw_timestamp_part_1",
    "raw_timestamp_part_2",
    "cvtd_timestamp",
    "num_window",
    "problem_id",
]

INDICATOR_COL = "complete_case"

TRAIN_SIZE = 0.6
RANDOM_STATE = 42
CV_FOLDS = 0
N_JOBS = 1

PREDICTION_PATTERN = "problem_id_{}.txt"

DEFAULTS = {
    'train_path': str(TRAIN_PATH),
    'test_path': str(TEST_PATH),
    'output_dir': str(OUTPUT_DIR),
    'na_values': NA_VALUES,
    'label_col': LABEL_COL,
    'categorical_columns': CATEGORICAL_COLUMNS,
    'exclude_columns': EXCLUDE_COLUMNS,
    'indicator_col': INDICATOR_COL,
    'train_size': TRAIN_SIZE,
    'random_state': RANDOM_STATE,
    'cv_folds': CV_FOLDS,
    'n_jobs': N_JOBS,
    'prediction_pattern': PREDICTION_PATTERN,
}


def load_config(config_path=None) -> dict:
    """Return the pipeline defaults, overlaid with a YAML file if one is given."""
    config = {key: (list(value) if isinstance(value, list) else value)
              for key, value in DEFAULTS.items()}

    if config_path is None:
        return config

    with open(config_path, "r") as f:
        overrides = yaml.safe_load(f) or {}

    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    unknown = sorted(set(overrides) - set(DEFAULTS))
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")

    config.update(overrides)
    return config
