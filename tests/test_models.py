import numpy as np
import pandas as pd
import pytest
from sklearn.ensemble import RandomForestClassifier, GradientBoostingClassifier
from sklearn.tree import DecisionTreeClassifier

from cleaning import split_by_completeness, add_complete_case_indicator, align_to_features
from load_data import read_activity_csv
from models import ExerciseClassificationFramework, confusion_accuracy, MODEL_NAMES


@pytest.fixture
def cleaned(raw_frame):
    return split_by_completeness(raw_frame, verbose=False)


@pytest.fixture
def framework(cleaned):
    return ExerciseClassificationFramework(cleaned['mostly_complete'], random_state=42)


def test_confusion_accuracy():
    assert confusion_accuracy([0, 1, 1, 2], [0, 1, 0, 2]) == pytest.approx(0.75)
    assert confusion_accuracy(['A', 'B'], ['A', 'B']) == 1.0
    assert confusion_accuracy([], []) == 0.0


def test_requires_data_with_label():
    with pytest.raises(ValueError):
        ExerciseClassificationFramework(None)
    with pytest.raises(ValueError):
        ExerciseClassificationFramework(pd.DataFrame({'a': [1]}))


def test_stratified_split(framework):
    framework.setup_train_validation(train_size=0.6)

    assert len(framework.X_train) == 90
    assert len(framework.X_val) == 60
    assert np.bincount(framework.y_train).tolist() == [18] * 5
    assert np.bincount(framework.y_val).tolist() == [12] * 5
    assert list(framework.label_encoder.classes_) == ['A', 'B', 'C', 'D', 'E']
    # One-hot columns for the categorical predictors
    assert 'new_window_yes' in framework.design_columns
    assert 'user_name_pedro' in framework.design_columns
    assert 'complete_case' in framework.design_columns


def test_split_is_reproducible(cleaned):
    first = ExerciseClassificationFramework(cleaned['mostly_complete'], random_state=7)
    second = ExerciseClassificationFramework(cleaned['mostly_complete'], random_state=7)
    first.setup_train_validation()
    second.setup_train_validation()

    assert first.X_train.index.tolist() == second.X_train.index.tolist()


def test_build_models(framework):
    models = framework.build_models()

    assert list(models) == MODEL_NAMES
    assert isinstance(models['Random Forest'], RandomForestClassifier)
    assert isinstance(models['Gradient Boosting'], GradientBoostingClassifier)
    assert isinstance(models['Decision Tree'], DecisionTreeClassifier)
    assert all(model.random_state == 42 for model in models.values())


def test_steps_must_run_in_order(framework):
    with pytest.raises(ValueError):
        framework.train_models()
    with pytest.raises(ValueError):
        framework.evaluate_models()
    with pytest.raises(ValueError):
        framework.rank_models()
    with pytest.raises(ValueError):
        framework.predict(pd.DataFrame())


def test_unknown_model_name(framework):
    framework.setup_train_validation()
    with pytest.raises(ValueError):
        framework.train_models(models_to_use=['SVM'])


def test_train_and_evaluate(framework):
    framework.setup_train_validation()
    framework.train_models()
    results = framework.evaluate_models()

    assert set(results) == set(MODEL_NAMES)
    for result in results.values():
        assert result['train_accuracy'] > 0.9
        assert result['accuracy'] > 0.9
        assert result['out_of_sample_error'] == pytest.approx(1 - result['accuracy'])
        assert result['confusion_matrix'].shape == (5, 5)
        assert result['confusion_matrix'].sum() == 60
        assert result['train_confusion_matrix'].sum() == 90
        assert result['accuracy'] == pytest.approx(
            np.trace(result['confusion_matrix']) / result['confusion_matrix'].sum()
        )


def test_parallel_training_matches_models(framework):
    framework.setup_train_validation()
    framework.train_models(models_to_use=['Decision Tree', 'Random Forest'], n_jobs=2)

    assert set(framework.models) == {'Decision Tree', 'Random Forest'}
    assert hasattr(framework.models['Random Forest'], 'estimators_')


def test_rank_models_orders_by_validation_accuracy(framework):
    framework.setup_train_validation()
    framework.train_models()
    framework.evaluate_models()
    framework.results['Decision Tree']['accuracy'] = 1.01

    ranking = framework.rank_models()

    assert ranking.iloc[0]['model'] == 'Decision Tree'
    assert ranking['validation_accuracy'].is_monotonic_decreasing
    assert framework.get_best_model()['name'] == 'Decision Tree'


def test_rank_ties_keep_model_order(framework):
    framework.setup_train_validation()
    framework.train_models()
    framework.evaluate_models()
    for result in framework.results.values():
        result['accuracy'] = 0.5

    ranking = framework.rank_models()

    assert ranking['model'].tolist() == MODEL_NAMES


def test_cross_validate(framework):
    framework.setup_train_validation()
    framework.train_models(models_to_use=['Decision Tree'])

    cv_results = framework.cross_validate(n_splits=3)

    assert list(cv_results) == ['Decision Tree']
    assert len(cv_results['Decision Tree']['scores']) == 3
    assert 0.0 <= cv_results['Decision Tree']['mean'] <= 1.0


def test_refit_and_predict(framework, cleaned, testing_csv, expected_test_labels):
    framework.run_complete_pipeline()
    final_model = framework.refit_best()

    assert final_model is not framework.models[framework.final_model_name]
    assert final_model.n_features_in_ == len(framework.design_columns)

    test_df = read_activity_csv(testing_csv)
    test_df = add_complete_case_indicator(test_df, cleaned['reference_columns'])
    assert test_df['complete_case'].tolist() == [0] * 10

    predictions = framework.predict(test_df)

    assert list(predictions) == expected_test_labels


def test_refit_rejects_frame_without_features(framework):
    framework.run_complete_pipeline(models_to_use=['Decision Tree'])

    with pytest.raises(ValueError):
        framework.refit_best(pd.DataFrame({'classe': ['A']}))


def test_run_complete_pipeline(framework):
    output = framework.run_complete_pipeline(cv_folds=3)

    assert set(output) == {'results', 'ranking', 'cv_results', 'best_model'}
    assert output['best_model']['name'] == output['ranking'].iloc[0]['model']
    assert set(output['cv_results']) == set(MODEL_NAMES)


def test_retraining_a_subset_replaces_the_ranking(framework):
    framework.run_complete_pipeline()

    framework.train_models(models_to_use=['Decision Tree'])
    framework.evaluate_models()
    best = framework.get_best_model()

    assert best['name'] == 'Decision Tree'
    assert framework.ranking['model'].tolist() == ['Decision Tree']


def test_new_split_clears_fitted_state(framework):
    framework.run_complete_pipeline(cv_folds=3)

    framework.setup_train_validation()

    assert framework.models == {}
    assert framework.results == {}
    assert framework.ranking is None
    assert framework.cv_results == {}


def test_cross_validation_reports_only_the_current_run(framework):
    framework.run_complete_pipeline(cv_folds=3)

    output = framework.run_complete_pipeline(models_to_use=['Decision Tree'], cv_folds=3)

    assert list(output['cv_results']) == ['Decision Tree']


def test_predict_handles_missing_and_unseen_values(framework, cleaned, testing_csv, expected_test_labels):
    framework.run_complete_pipeline(models_to_use=['Gradient Boosting'])
    framework.refit_best()
    assert isinstance(framework.final_model, GradientBoostingClassifier)

    test_df = read_activity_csv(testing_csv)
    test_df = add_complete_case_indicator(test_df, cleaned['reference_columns'])
    test_df = test_df.drop(columns=['accel_arm_x'])
    test_df['user_name'] = test_df['user_name'].astype(object)
    test_df.loc[0, 'roll_belt'] = np.nan
    test_df.loc[1, 'user_name'] = 'eurico'

    encoded = framework._encode(align_to_features(test_df, framework.feature_columns, framework.categories))
    assert not encoded.isnull().any().any()
    user_columns = [col for col in encoded.columns if col.startswith('user_name_')]
    assert (encoded.loc[1, user_columns] == 0).all()

    predictions = framework.predict(test_df)

    assert len(predictions) == len(test_df)
    assert set(predictions) <= set(framework.label_encoder.classes_)
    assert list(predictions[2:]) == expected_test_labels[2:]
