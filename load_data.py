import pandas as pd

from config import NA_VALUES, CATEGORICAL_COLUMNS, LABEL_COL


def read_activity_csv(path, na_values=None, categorical_columns=None):
    """
    Read one sensor-activity CSV.

    Only the given sentinel strings are treated as missing, so a literal
    "#DIV/0!" in a summary column becomes NaN instead of turning the whole
    column into strings.

    Args:
        path (str): CSV file to read
        na_values (list): Strings that mark a missing value
        categorical_columns (list): Columns to cast to the category dtype

    Returns:
        DataFrame: The loaded data
    """
    na_values = NA_VALUES if na_values is None else na_values
    categorical_columns = CATEGORICAL_COLUMNS if categorical_columns is None else categorical_columns

    df = pd.read_csv(path, na_values=na_values, keep_default_na=False, low_memory=False)

    # The export writes the row number under an empty header
    first_col = df.columns[0]
    if first_col == '' or str(first_col).startswith('Unnamed: 0'):
        df = df.rename(columns={first_col: 'X'})

    for col in categorical_columns:
        if col in df.columns:
            df[col] = df[col].astype('category')

    print(f"Loaded '{path}'. Shape: {df.shape}")
    return df


def load_datasets(train_path, test_path, na_values=None, categorical_columns=None):
    """Load the training and the external test file with the same parsing rules."""
    train_df = read_activity_csv(train_path, na_values=na_values, categorical_columns=categorical_columns)
    test_df = read_activity_csv(test_path, na_values=na_values, categorical_columns=categorical_columns)
    return train_df, test_df


def summarize_dataset(df, label_col=LABEL_COL, verbose=True):
    """Print and return row/column counts, missing-value totals and the class distribution."""
    missing_per_col = df.isnull().sum()
    summary = {
        'n_rows': df.shape[0],
        'n_cols': df.shape[1],
        'missing_values': int(missing_per_col.sum()),
        'columns_with_missing': int((missing_per_col > 0).sum()),
        'empty_columns': int((missing_per_col == len(df)).sum()) if len(df) else 0,
        'class_distribution': df[label_col].value_counts().sort_index() if label_col in df.columns else None,
    }

    if verbose:
        print(f"📊 Dataset: {summary['n_rows']} rows x {summary['n_cols']} columns")
        print(f"   - Missing values: {summary['missing_values']}")
        print(f"   - Columns with missing values: {summary['columns_with_missing']}")
        print(f"   - Entirely empty columns: {summary['empty_columns']}")
        if summary['class_distribution'] is not None:
            print("\n📊 Class distribution:")
            for class_name, count in summary['class_distribution'].items():
                print(f"   {class_name}: {count}")

    return summary
