import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

from load_data import read_activity_csv

CLASSES = ['A', 'B', 'C', 'D', 'E']
USERS = ['adelmo', 'carlitos', 'pedro']


def make_training_frame(n_per_class=30, seed=0):
    """
    Sensor export in the shape of the weight-lifting recordings: raw readings on
    every row, window summaries only on ``new_window == 'yes'`` rows, and two
    summary columns that were never filled in.
    """
    rng = np.random.RandomState(seed)
    rows = []
    k = 0

    for label_idx, label in enumerate(CLASSES):
        for i in range(n_per_class):
            new_window = 'yes' if i % 10 == 0 else 'no'
            roll = label_idx * 10 + rng.normal(0, 1)

            if new_window == 'no':
                kurtosis = ''
                max_roll = ''
            else:
                kurtosis = '#DIV/0!' if i == 0 else f'{rng.normal(0, 1):.4f}'
                max_roll = f'{roll + 1:.4f}'

            rows.append({
                'user_name': USERS[k % len(USERS)],
                'raw_timestamp_part_1': 1323084231 + k,
                'raw_timestamp_part_2': rng.randint(0, 999999),
                'cvtd_timestamp': '05/12/2011 11:23',
                'new_window': new_window,
                'num_window': k // 10,
                'roll_belt': round(roll, 4),
                'pitch_belt': round(-label_idx * 5 + rng.normal(0, 1), 4),
                'accel_arm_x': round(rng.normal(0, 3), 4),
                'kurtosis_roll_belt': kurtosis,
                'max_roll_belt': max_roll,
                'amplitude_yaw_belt': 'NA',
                'skewness_yaw_belt': '',
                'classe': label,
            })
            k += 1

    return pd.DataFrame(rows)


def make_testing_frame():
    rows = []
    for idx in range(len(CLASSES) * 2):
        label_idx = idx % len(CLASSES)
        rows.append({
            'user_name': USERS[idx % len(USERS)],
            'raw_timestamp_part_1': 1323095000 + idx,
            'raw_timestamp_part_2': 1000 + idx,
            'cvtd_timestamp': '05/12/2011 14:23',
            'new_window': 'no',
            'num_window': 900 + idx,
            'roll_belt': label_idx * 10.0,
            'pitch_belt': -label_idx * 5.0,
            'accel_arm_x': 0.0,
            'kurtosis_roll_belt': '',
            'max_roll_belt': '',
            'amplitude_yaw_belt': 'NA',
            'skewness_yaw_belt': '',
            'problem_id': idx + 1,
        })
    return pd.DataFrame(rows)


@pytest.fixture
def training_csv(tmp_path):
    path = tmp_path / 'pml-training.csv'
    # The export writes the row number under an empty header
    make_training_frame().to_csv(path, index=True)
    return path


@pytest.fixture
def testing_csv(tmp_path):
    path = tmp_path / 'pml-testing.csv'
    make_testing_frame().to_csv(path, index=True)
    return path


@pytest.fixture
def raw_frame(training_csv):
    return read_activity_csv(training_csv)


@pytest.fixture
def expected_test_labels():
    return [CLASSES[idx % len(CLASSES)] for idx in range(len(CLASSES) * 2)]
