"""
Exercise Quality Report
=======================

Predicts how a weight-lifting repetition was performed (``classe``) from
body and dumbbell sensor readings.

Steps:
1. Load - read the training and test CSVs
2. Clean - drop empty columns, split by completeness, add the complete-case indicator
3. Partition - stratified 60/40 train/validation split
4. Fit - random forest, gradient boosting, decision tree
5. Score - confusion-matrix accuracy, ranked by validation accuracy
6. Predict - refit the best model on all cleaned rows and write one file per test row

Usage:
    python run_analysis.py --train data/pml-training.csv --test data/pml-testing.csv
"""

import argparse
import os
import warnings

from config import load_config
from load_data import load_datasets, summarize_dataset
from cleaning import split_by_completeness, add_complete_case_indicator
from models import ExerciseClassificationFramework
from report import plot_feature_importance, write_prediction_files, write_predictions_csv


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Train and compare exercise-quality classifiers")
    parser.add_argument("--config", help="YAML file overriding the defaults in config.py")
    parser.add_argument("--train", help="Training CSV")
    parser.add_argument("--test", help="Test CSV to predict")
    parser.add_argument("--output-dir", help="Directory for the prediction files")
    parser.add_argument("--n-jobs", type=int, help="Models fitted in parallel (-1 for all cores)")
    parser.add_argument("--cv-folds", type=int, help="Run k-fold cross-validation on the training partition")
    parser.add_argument("--plots", action="store_true", help="Save confusion-matrix and importance plots")
    return parser.parse_args(argv)


def run_analysis(config, plots=False):
    """
    Run every step of the report with the given configuration.

    Returns:
        dict: Cleaning output, model results, ranking, best model and test predictions
    """
    print("🚀 Running exercise quality report...")
    print("=" * 50)

    # Step 1: Load
    train_df, test_df = load_datasets(
        config['train_path'], config['test_path'],
        na_values=config['na_values'],
        categorical_columns=config['categorical_columns']
    )
    summarize_dataset(train_df, label_col=config['label_col'])

    # Step 2: Clean
    cleaned = split_by_completeness(
        train_df,
        exclude_columns=config['exclude_columns'],
        indicator_col=config['indicator_col'],
        label_col=config['label_col']
    )

    output_dir = config['output_dir']
    os.makedirs(output_dir, exist_ok=True)

    # Steps 3-5: Partition, fit, score and rank
    framework = ExerciseClassificationFramework(
        cleaned['mostly_complete'],
        label_col=config['label_col'],
        random_state=config['random_state']
    )
    pipeline_results = framework.run_complete_pipeline(
        train_size=config['train_size'],
        n_jobs=config['n_jobs'],
        cv_folds=config['cv_folds'],
        plot=plots,
        plot_path=os.path.join(output_dir, 'model_comparison.png') if plots else None
    )

    # Step 6: Refit on every cleaned row and predict the test file
    final_model = framework.refit_best()

    if plots:
        plot_feature_importance(final_model, framework.design_columns,
                                output_path=os.path.join(output_dir, 'feature_importance.png'))

    test_prepared = add_complete_case_indicator(test_df, cleaned['reference_columns'],
                                                indicator_col=config['indicator_col'])
    predictions = framework.predict(test_prepared)

    ids = test_df['problem_id'].tolist() if 'problem_id' in test_df.columns else None
    write_prediction_files(predictions, output_dir, pattern=config['prediction_pattern'], ids=ids)
    write_predictions_csv(predictions, os.path.join(output_dir, 'predictions.csv'), ids=ids)

    print("\n" + "=" * 50)
    print(f"🎉 Report complete! Best model: {framework.final_model_name}")

    return {
        'cleaned': cleaned,
        'results': pipeline_results['results'],
        'ranking': pipeline_results['ranking'],
        'cv_results': pipeline_results['cv_results'],
        'best_model': pipeline_results['best_model'],
        'predictions': predictions,
    }


def main(argv=None):
    warnings.filterwarnings('ignore')

    args = parse_args(argv)
    config = load_config(args.config)

    overrides = {
        'train_path': args.train,
        'test_path': args.test,
        'output_dir': args.output_dir,
        'n_jobs': args.n_jobs,
        'cv_folds': args.cv_folds,
    }
    config.update({key: value for key, value in overrides.items() if value is not None})

    run_analysis(config, plots=args.plots)


if __name__ == "__main__":
    main()
