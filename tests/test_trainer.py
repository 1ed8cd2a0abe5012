import numpy as np
import pandas as pd
import pytest

from churn_logit.exceptions import ChurnAnalysisError, DegenerateResponseError, MissingColumnError
from churn_logit.models import ChurnModel, ModelTrainer


def test_model_uses_every_recipe_column(model, fitted_recipe):
    assert model.feature_names == fitted_recipe.output_columns


def test_tenure_lowers_churn_odds(model):
    # The synthetic data is generated with a negative tenure effect
    assert model.coef["tenure_months"] < 0
    assert model.coef["monthly_charges"] > 0


def test_predictions_follow_threshold(model, fitted_recipe, split):
    baked = fitted_recipe.apply(split.test)

    proba = model.predict_proba(baked)
    labels = model.predict(baked)

    assert ((proba >= 0) & (proba <= 1)).all()
    assert ((labels == "Yes") == (proba >= 0.5)).all()
    assert list(labels.cat.categories) == ["Yes", "No"]


def test_lower_threshold_predicts_more_positives(model, fitted_recipe, split):
    baked = fitted_recipe.apply(split.test)

    assert (model.predict(baked, threshold=0.3) == "Yes").sum() >= (model.predict(baked, threshold=0.5) == "Yes").sum()


def test_coefficient_table(model):
    table = model.coefficients()

    assert list(table["term"]) == ["(Intercept)"] + model.feature_names
    assert list(table.columns) == ["term", "estimate", "std_error", "statistic", "p_value", "odds_ratio"]
    assert table["odds_ratio"].to_numpy() == pytest.approx(np.exp(table["estimate"].to_numpy()))
    assert (table["std_error"] > 0).all()
    assert table["p_value"].between(0, 1).all()


def test_single_class_response_raises(config, fitted_recipe, split, outcome):
    baked = fitted_recipe.apply(split.train)
    only_no = baked[baked["churn"] == "No"]

    with pytest.raises(DegenerateResponseError) as excinfo:
        ModelTrainer(config).train(only_no, outcome)

    assert excinfo.value.column == "churn"


def test_missing_outcome_values_raise(config, fitted_recipe, split, outcome):
    baked = fitted_recipe.apply(split.train)
    baked.iloc[:50, baked.columns.get_loc("churn")] = np.nan

    with pytest.raises(DegenerateResponseError) as excinfo:
        ModelTrainer(config).train(baked, outcome)

    assert excinfo.value.column == "churn"


def test_foreign_outcome_label_raises(config, fitted_recipe, split, outcome):
    baked = fitted_recipe.apply(split.train)
    baked["churn"] = baked["churn"].astype(object)
    baked.iloc[3, baked.columns.get_loc("churn")] = "Maybe"

    with pytest.raises(DegenerateResponseError) as excinfo:
        ModelTrainer(config).train(baked, outcome)

    assert excinfo.value.value == "Maybe"


def test_collinear_column_raises(config, fitted_recipe, split, outcome):
    baked = fitted_recipe.apply(split.train)
    baked.insert(0, "tenure_years", baked["tenure_months"] / 12)
    baked = baked[["tenure_months", "tenure_years", "monthly_charges", "churn"]]

    with pytest.raises(DegenerateResponseError) as excinfo:
        ModelTrainer(config).train(baked, outcome)

    assert excinfo.value.column == "tenure_years"


def test_constant_column_is_collinear_with_intercept(config, fitted_recipe, split, outcome):
    baked = fitted_recipe.apply(split.train).assign(constant=1.0)

    with pytest.raises(DegenerateResponseError) as excinfo:
        ModelTrainer(config).train(baked, outcome)

    assert excinfo.value.column == "constant"


def test_perfect_separation_raises(config, outcome):
    x = np.arange(40, dtype=float)
    data = pd.DataFrame({
        "x": x,
        "churn": pd.Categorical(np.where(x >= 20, "Yes", "No"), categories=["Yes", "No"]),
    })

    with pytest.raises(DegenerateResponseError):
        ModelTrainer(config).train(data, outcome)


def test_non_numeric_predictor_raises(config, split, outcome):
    with pytest.raises(ChurnAnalysisError) as excinfo:
        ModelTrainer(config).train(split.train, outcome)

    assert excinfo.value.column == "gender"


def test_predict_requires_feature_columns(model, fitted_recipe, split):
    baked = fitted_recipe.apply(split.test).drop(columns=["gender_Male"])

    with pytest.raises(MissingColumnError):
        model.predict(baked)


def test_save_and_load(model, fitted_recipe, split, tmp_path):
    path = model.save(tmp_path / "model.joblib")
    baked = fitted_recipe.apply(split.test)

    loaded = ChurnModel.load(path)

    pd.testing.assert_series_equal(loaded.predict_proba(baked), model.predict_proba(baked))
