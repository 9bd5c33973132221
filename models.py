import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.base import clone
from sklearn.ensemble import RandomForestClassifier, GradientBoostingClassifier
from sklearn.tree import DecisionTreeClassifier
from sklearn.model_selection import train_test_split, StratifiedKFold, cross_val_score
from sklearn.preprocessing import LabelEncoder
from sklearn.metrics import classification_report, confusion_matrix

from config import LABEL_COL, RANDOM_STATE, TRAIN_SIZE
from cleaning import align_to_features
from report import plot_results

MODEL_NAMES = ['Random Forest', 'Gradient Boosting', 'Decision Tree']


def confusion_accuracy(y_true, y_pred, labels=None):
    """Accuracy read off the confusion matrix: correct predictions (the diagonal) over all predictions."""
    if len(y_true) == 0:
        return 0.0

    cm = confusion_matrix(y_true, y_pred, labels=labels)
    total = cm.sum()
    if total == 0:
        return 0.0
    return float(np.trace(cm) / total)


def _fit_model(model_name, model, X, y):
    model.fit(X, y)
    return model_name, model


class ExerciseClassificationFramework:
    """
    Train, score and compare classifiers that predict how a weight-lifting
    repetition was performed (``classe``) from body and dumbbell sensor readings.
    """

    def __init__(self, df=None, label_col=LABEL_COL, random_state=RANDOM_STATE):
        """
        Args:
            df (DataFrame): Cleaned (mostly-complete) dataset including the label column
            label_col (str): Target column
            random_state (int): Seed for the split and every estimator
        """
        if df is None:
            raise ValueError("A cleaned DataFrame must be provided")
        if label_col not in df.columns:
            raise ValueError(f"Label column '{label_col}' not found in data")

        self.data = df.copy()
        self.label_col = label_col
        self.random_state = random_state

        self.feature_columns = [col for col in self.data.columns if col != label_col]
        self.categories = {col: self.data[col].cat.categories.tolist()
                           for col in self.feature_columns
                           if isinstance(self.data[col].dtype, pd.CategoricalDtype)}

        self.label_encoder = LabelEncoder()
        self.design_columns = None
        self.fill_values = None
        self.X_train = None
        self.X_val = None
        self.y_train = None
        self.y_val = None
        self.models = {}
        self.results = {}
        self.ranking = None
        self.cv_results = {}
        self.final_model = None
        self.final_model_name = None

    def _encode(self, X):
        """One-hot encode categorical features and lay them out like the training design matrix."""
        categorical = [col for col in X.columns if isinstance(X[col].dtype, pd.CategoricalDtype)]
        encoded = pd.get_dummies(X, columns=categorical)

        if self.design_columns is not None:
            encoded = encoded.reindex(columns=self.design_columns, fill_value=0)

        encoded = encoded.astype(float)

        if self.fill_values is not None:
            encoded = encoded.fillna(self.fill_values)

        return encoded

    def setup_train_validation(self, train_size=TRAIN_SIZE, stratify=True):
        """
        Partition the data into training and validation sets.

        Args:
            train_size (float): Proportion of rows used for fitting
            stratify (bool): Whether to keep the class proportions in both partitions
        """
        print("🔄 Setting up train/validation split...")

        X = self.data[self.feature_columns]
        y = self.label_encoder.fit_transform(self.data[self.label_col])

        # A new split invalidates everything fitted or scored on the old one
        self.models = {}
        self.results = {}
        self.ranking = None
        self.cv_results = {}

        self.design_columns = None
        self.fill_values = None
        X_encoded = self._encode(X)
        self.design_columns = X_encoded.columns.tolist()
        self.fill_values = X_encoded.median()

        stratify_param = y if stratify else None

        self.X_train, self.X_val, self.y_train, self.y_val = train_test_split(
            X_encoded, y,
            train_size=train_size,
            random_state=self.random_state,
            stratify=stratify_param
        )

        print("✅ Train/validation split complete!")
        print(f"   - Training set: {self.X_train.shape[0]} instances")
        print(f"   - Validation set: {self.X_val.shape[0]} instances")
        print(f"   - Features: {self.X_train.shape[1]}")
        print(f"   - Classes: {len(self.label_encoder.classes_)}")

    def build_models(self):
        """The three candidate classifiers, at (near) default settings."""
        return {
            'Random Forest': RandomForestClassifier(n_estimators=100, random_state=self.random_state),
            'Gradient Boosting': GradientBoostingClassifier(random_state=self.random_state),
            'Decision Tree': DecisionTreeClassifier(random_state=self.random_state),
        }

    def train_models(self, models_to_use=None, n_jobs=1):
        """
        Fit the candidate classifiers on the training partition.

        Args:
            models_to_use (list): Names of the models to fit, all three by default
            n_jobs (int): Number of models fitted at once; 1 fits them one after another
        """
        print("🚀 Training machine learning models...")

        if self.X_train is None:
            raise ValueError("Train/validation split not set up. Run setup_train_validation() first.")

        model_configs = self.build_models()

        if models_to_use:
            unknown = [name for name in models_to_use if name not in model_configs]
            if unknown:
                raise ValueError(f"Unknown models: {unknown}. Choose from {MODEL_NAMES}")
            print(f"Training models: {models_to_use}")
            model_configs = {k: v for k, v in model_configs.items() if k in models_to_use}

        if n_jobs == 1:
            fitted = []
            for model_name, model in model_configs.items():
                print(f"\n🔧 Training {model_name}...")
                fitted.append(_fit_model(model_name, model, self.X_train, self.y_train))
        else:
            print(f"\n🔧 Training {len(model_configs)} models in parallel (n_jobs={n_jobs})...")
            fitted = Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(_fit_model)(model_name, model, self.X_train, self.y_train)
                for model_name, model in model_configs.items()
            )

        self.models = dict(fitted)
        self.results = {}
        self.ranking = None
        print("✅ Model training complete!")

    def evaluate_models(self, plot=False, output_path=None):
        """
        Score every trained model on the training and validation partitions.
        """
        print("📈 Evaluating models...")

        if not self.models:
            raise ValueError("No models trained yet. Run train_models() first.")

        self.ranking = None
        labels = list(range(len(self.label_encoder.classes_)))
        class_names = [str(name) for name in self.label_encoder.classes_]
        results = {}

        for model_name, model in self.models.items():
            print(f"\n🔍 Evaluating {model_name}...")

            train_pred = model.predict(self.X_train)
            val_pred = model.predict(self.X_val)

            train_accuracy = confusion_accuracy(self.y_train, train_pred, labels=labels)
            val_accuracy = confusion_accuracy(self.y_val, val_pred, labels=labels)

            report = classification_report(
                self.y_val,
                val_pred,
                labels=labels,
                target_names=class_names,
                output_dict=True,
                zero_division=0
            )

            results[model_name] = {
                'train_accuracy': train_accuracy,
                'accuracy': val_accuracy,
                'out_of_sample_error': 1.0 - val_accuracy,
                'classification_report': report,
                'train_confusion_matrix': confusion_matrix(self.y_train, train_pred, labels=labels),
                'confusion_matrix': confusion_matrix(self.y_val, val_pred, labels=labels),
                'predictions': val_pred
            }

            print(f"   Training accuracy: {train_accuracy:.4f}")
            print(f"   Validation accuracy: {val_accuracy:.4f}")
            print(f"   Out-of-sample error: {1.0 - val_accuracy:.4f}")

        self.results = results

        if plot:
            plot_results(self.results, class_names, output_path=output_path)

        return results

    def rank_models(self):
        """Order the evaluated models by held-out accuracy, best first."""
        if not self.results:
            raise ValueError("No results available. Run evaluate_models() first.")

        ranking = pd.DataFrame([
            {
                'model': model_name,
                'train_accuracy': result['train_accuracy'],
                'validation_accuracy': result['accuracy'],
                'out_of_sample_error': result['out_of_sample_error'],
            }
            for model_name, result in self.results.items()
        ])

        # Stable sort keeps training order between models that tie
        ranking = ranking.sort_values('validation_accuracy', ascending=False, kind='mergesort')
        self.ranking = ranking.reset_index(drop=True)

        print("\n🏁 Model ranking (validation accuracy):")
        print(self.ranking.to_string(index=False))

        return self.ranking

    def cross_validate(self, n_splits=5):
        """
        Stratified k-fold accuracy of each candidate on the training partition.
        """
        if self.X_train is None:
            raise ValueError("Train/validation split not set up. Run setup_train_validation() first.")

        print(f"🔁 Running {n_splits}-fold cross-validation...")

        self.cv_results = {}
        cv = StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=self.random_state)
        model_configs = self.build_models()
        if self.models:
            model_configs = {k: v for k, v in model_configs.items() if k in self.models}

        for model_name, model in model_configs.items():
            scores = cross_val_score(model, self.X_train, self.y_train, cv=cv, scoring='accuracy')
            self.cv_results[model_name] = {
                'scores': scores,
                'mean': float(scores.mean()),
                'std': float(scores.std()),
            }
            print(f"   {model_name}: {scores.mean():.4f} (+/- {scores.std():.4f})")

        return self.cv_results

    def get_best_model(self):
        """
        Return the best performing model based on validation accuracy
        """
        if self.ranking is None:
            self.rank_models()

        best_model_name = self.ranking.iloc[0]['model']
        best_accuracy = self.results[best_model_name]['accuracy']

        print(f"🏆 Best model: {best_model_name} (Accuracy: {best_accuracy:.4f})")

        return {
            'name': best_model_name,
            'model': self.models[best_model_name],
            'accuracy': best_accuracy,
            'results': self.results[best_model_name]
        }

    def refit_best(self, full_df=None):
        """
        Refit a fresh copy of the best model on the full cleaned dataset.

        Args:
            full_df (DataFrame): Data to refit on; defaults to the frame the framework was built with
        """
        best = self.get_best_model()
        full_df = self.data if full_df is None else full_df

        missing = [col for col in self.feature_columns + [self.label_col] if col not in full_df.columns]
        if missing:
            raise ValueError(f"Columns missing from refit data: {missing}")

        print(f"🔄 Refitting {best['name']} on {len(full_df)} rows...")

        X = self._encode(align_to_features(full_df, self.feature_columns, self.categories))
        y = self.label_encoder.transform(full_df[self.label_col])

        self.final_model = clone(best['model'])
        self.final_model.fit(X, y)
        self.final_model_name = best['name']

        print("✅ Refit complete!")
        return self.final_model

    def predict(self, test_df):
        """Predict ``classe`` labels for an external frame with the refitted model."""
        if self.final_model is None:
            raise ValueError("No refitted model available. Run refit_best() first.")

        X = self._encode(align_to_features(test_df, self.feature_columns, self.categories))
        predictions = self.final_model.predict(X)
        return self.label_encoder.inverse_transform(predictions)

    def run_complete_pipeline(self, train_size=TRAIN_SIZE, models_to_use=None, n_jobs=1,
                              cv_folds=0, plot=False, plot_path=None):
        """
        Split, fit, score and rank the candidate models.

        Returns:
            dict: Results per model, the ranking, cross-validation scores and the best model
        """
        print("🚀 Running complete ML pipeline...")
        print("=" * 50)

        self.setup_train_validation(train_size=train_size)
        self.train_models(models_to_use=models_to_use, n_jobs=n_jobs)
        self.evaluate_models(plot=plot, output_path=plot_path)
        self.rank_models()

        if cv_folds and cv_folds > 1:
            self.cross_validate(n_splits=cv_folds)

        best_model_info = self.get_best_model()

        print("\n" + "=" * 50)
        print("🎉 Pipeline complete!")

        return {
            'results': self.results,
            'ranking': self.ranking,
            'cv_results': self.cv_results,
            'best_model': best_model_info
        }
