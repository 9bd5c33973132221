import os

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from config import PREDICTION_PATTERN


def _finish_figure(fig, output_path):
    if output_path:
        fig.savefig(output_path, bbox_inches='tight')
        plt.close(fig)
        print(f"✅ Figure saved to: {output_path}")
    else:
        plt.show()


def plot_results(results, class_names, output_path=None):
    """
    Validation confusion matrices for every model plus a train/validation accuracy comparison.
    """
    if not results:
        return None

    n_models = len(results)
    fig, axes = plt.subplots(2, n_models, figsize=(5 * n_models, 10))

    if n_models == 1:
        axes = axes.reshape(-1, 1)

    model_names = list(results.keys())
    train_accuracies = [results[name]['train_accuracy'] for name in model_names]
    val_accuracies = [results[name]['accuracy'] for name in model_names]

    for i, (model_name, result) in enumerate(results.items()):
        sns.heatmap(
            result['confusion_matrix'],
            annot=True,
            fmt='d',
            cmap='Blues',
            xticklabels=class_names,
            yticklabels=class_names,
            ax=axes[0, i]
        )
        axes[0, i].set_title(f'{model_name}\nAccuracy: {result["accuracy"]:.4f}')
        axes[0, i].set_xlabel('Predicted')
        axes[0, i].set_ylabel('Actual')

    x = np.arange(n_models)
    axes[1, 0].bar(x - 0.2, train_accuracies, width=0.4, alpha=0.7, label='Training')
    axes[1, 0].bar(x + 0.2, val_accuracies, width=0.4, alpha=0.7, label='Validation')
    axes[1, 0].set_xticks(x)
    axes[1, 0].set_xticklabels(model_names, rotation=45)
    axes[1, 0].set_ylabel('Accuracy')
    axes[1, 0].set_title('Model Performance Comparison')
    axes[1, 0].legend()

    for i in range(1, n_models):
        axes[1, i].set_visible(False)

    fig.tight_layout()
    _finish_figure(fig, output_path)
    return fig


def plot_feature_importance(model, feature_names, top_k=15, output_path=None):
    """Horizontal bar chart of the largest feature importances, if the model exposes them."""
    if not hasattr(model, 'feature_importances_'):
        print("⚠️ Model has no feature importances, skipping plot.")
        return None

    importances = np.asarray(model.feature_importances_)
    top_indices = np.argsort(importances)[-top_k:]
    top_features = [feature_names[i] for i in top_indices]
    top_importances = importances[top_indices]

    fig, ax = plt.subplots(figsize=(8, max(4, 0.35 * len(top_features))))
    ax.barh(range(len(top_features)), top_importances)
    ax.set_yticks(range(len(top_features)))
    ax.set_yticklabels(top_features)
    ax.set_xlabel('Importance')
    ax.set_title(f'Top {len(top_features)} Features')

    fig.tight_layout()
    _finish_figure(fig, output_path)
    return fig


def write_prediction_files(predictions, output_dir, pattern=PREDICTION_PATTERN, ids=None):
    """
    Write each prediction to its own text file.

    Args:
        predictions (array-like): Predicted labels, one per test row
        output_dir (str): Directory for the answer files, created if needed
        pattern (str): File name with one ``{}`` placeholder for the row id
        ids (array-like): Row ids; 1..n when not given

    Returns:
        list: Paths of the written files
    """
    predictions = list(predictions)
    ids = list(range(1, len(predictions) + 1)) if ids is None else list(ids)

    if len(ids) != len(predictions):
        raise ValueError(f"Got {len(ids)} ids for {len(predictions)} predictions")

    os.makedirs(output_dir, exist_ok=True)

    paths = []
    for row_id, prediction in zip(ids, predictions):
        path = os.path.join(output_dir, pattern.format(row_id))
        with open(path, 'w') as f:
            f.write(str(prediction))
        paths.append(path)

    print(f"✅ Wrote {len(paths)} prediction files to: {output_dir}")
    return paths


def write_predictions_csv(predictions, path, ids=None):
    """Write every prediction into one ``id,prediction`` CSV."""
    predictions = list(predictions)
    ids = list(range(1, len(predictions) + 1)) if ids is None else list(ids)

    if len(ids) != len(predictions):
        raise ValueError(f"Got {len(ids)} ids for {len(predictions)} predictions")

    out = pd.DataFrame({'id': ids, 'prediction': [str(p) for p in predictions]})
    out.to_csv(path, index=False)
    print(f"✅ Predictions saved to: {path}")
    return out
