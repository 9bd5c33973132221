import pandas as pd

from config import EXCLUDE_COLUMNS, INDICATOR_COL, LABEL_COL


def drop_empty_columns(df):
    """Drop columns without a single observed value. Returns the frame and the dropped names."""
    empty_mask = df.isnull().all(axis=0)
    dropped = df.columns[empty_mask].tolist()
    return df.loc[:, ~empty_mask].copy(), dropped


def add_complete_case_indicator(df, reference_columns, indicator_col=INDICATOR_COL):
    """
    Mark rows that have a value in every reference column.

    A reference column that is absent from ``df`` counts as missing, so a
    frame lacking any of them gets an indicator of 0 everywhere.
    """
    df = df.copy()
    reference_columns = list(reference_columns)

    if all(col in df.columns for col in reference_columns):
        mask = df[reference_columns].notnull().all(axis=1)
    else:
        mask = pd.Series(False, index=df.index)

    df[indicator_col] = mask.astype(int)
    return df


def split_by_completeness(df, exclude_columns=None, indicator_col=INDICATOR_COL,
                          label_col=LABEL_COL, verbose=True):
    """
    Split the raw training frame into a mostly-complete and a fully-complete subset.

    Args:
        df (DataFrame): Raw training data
        exclude_columns (list): Bookkeeping columns that never become features
        indicator_col (str): Name of the binary complete-case column
        label_col (str): Target column

    Returns:
        dict with:
            - 'mostly_complete': every row, only the gap-free columns plus the indicator
            - 'fully_complete': complete-case rows only, every non-empty column
            - 'feature_columns': predictors of the mostly-complete subset
            - 'reference_columns': columns the complete-case test runs over
            - 'categories': categories of the categorical feature columns
            - 'dropped_columns': columns removed for being entirely empty
    """
    exclude_columns = EXCLUDE_COLUMNS if exclude_columns is None else exclude_columns

    if label_col not in df.columns:
        raise ValueError(f"Label column '{label_col}' not found in data")

    if verbose:
        print("🔧 Cleaning dataset...")

    df, dropped = drop_empty_columns(df)

    # Rows without a label cannot be used for fitting or scoring
    df = df[df[label_col].notnull()]

    reference_columns = [col for col in df.columns
                         if col not in exclude_columns and col not in (label_col, indicator_col)]

    with_indicator = add_complete_case_indicator(df, reference_columns, indicator_col)
    complete_mask = with_indicator[indicator_col] == 1

    fully_complete = df[complete_mask].copy()

    dense_columns = [col for col in df.columns
                     if col not in exclude_columns and col != indicator_col and df[col].notnull().all()]
    mostly_complete = with_indicator[dense_columns + [indicator_col]].copy()

    feature_columns = [col for col in mostly_complete.columns if col != label_col]
    categories = {col: mostly_complete[col].cat.categories.tolist()
                  for col in feature_columns
                  if isinstance(mostly_complete[col].dtype, pd.CategoricalDtype)}

    if verbose:
        print("✅ Cleaning complete!")
        print(f"   - Dropped empty columns: {len(dropped)}")
        print(f"   - Mostly-complete subset: {mostly_complete.shape}")
        print(f"   - Fully-complete subset: {fully_complete.shape}")
        print(f"   - Complete cases: {int(complete_mask.sum())} of {len(df)} rows")

    return {
        'mostly_complete': mostly_complete,
        'fully_complete': fully_complete,
        'feature_columns': feature_columns,
        'reference_columns': reference_columns,
        'categories': categories,
        'dropped_columns': dropped,
    }


def align_to_features(df, feature_columns, categories=None):
    """
    Align an external frame to the training feature columns.

    Missing columns are added as NaN, extra columns are dropped, and
    categorical columns are re-cast to the training levels so an unseen
    level turns into NaN.
    """
    aligned = df.reindex(columns=list(feature_columns))

    for col, levels in (categories or {}).items():
        if col in aligned.columns:
            values = aligned[col].astype(object)
            values = values.where(values.isin(levels))
            aligned[col] = pd.Categorical(values, categories=levels)

    return aligned
