import math

import numpy as np
import pandas as pd
import pytest

from churn_logit.exceptions import MissingColumnError, UnseenCategoryError
from churn_logit.features import DummyStep, FittedRecipe, NormalizeStep, Recipe


def test_train_and_test_share_output_columns(fitted_recipe, split):
    baked_train = fitted_recipe.apply(split.train)
    baked_test = fitted_recipe.apply(split.test)

    assert list(baked_train.columns) == list(baked_test.columns)


def test_dummy_step_drops_reference_levels(fitted_recipe):
    assert fitted_recipe.output_columns == [
        "tenure_months", "monthly_charges", "gender_Male", "is_senior_citizen_No"
    ]


def test_dummy_indicators_match_levels(fitted_recipe, split):
    baked = fitted_recipe.apply(split.test)

    assert (baked["gender_Male"] == (split.test["gender"] == "Male").astype(float)).all()
    assert (baked["is_senior_citizen_No"] == (split.test["is_senior_citizen"] == "No").astype(float)).all()


def test_outcome_passes_through_and_is_optional(fitted_recipe, split):
    baked = fitted_recipe.apply(split.test)
    unlabeled = fitted_recipe.apply(split.test.drop(columns=["churn"]))

    assert baked.columns[-1] == "churn"
    assert (baked["churn"] == split.test["churn"]).all()
    assert list(unlabeled.columns) == fitted_recipe.output_columns


def test_fit_ignores_outcome(fitted_recipe):
    assert "churn" not in fitted_recipe.predictors


def test_levels_are_learned_from_fit_data_only(customers):
    train = customers[customers["gender"] == "Female"]
    recipe = Recipe("churn", [DummyStep(["gender"])]).fit(train)

    with pytest.raises(UnseenCategoryError) as excinfo:
        recipe.apply(customers)

    assert excinfo.value.column == "gender"
    assert excinfo.value.value == "Male"


def test_unseen_level_raises_by_default(fitted_recipe, split):
    test = split.test.copy()
    test["gender"] = test["gender"].cat.add_categories(["Other"])
    test.iloc[0, test.columns.get_loc("gender")] = "Other"

    with pytest.raises(UnseenCategoryError) as excinfo:
        fitted_recipe.apply(test)

    assert excinfo.value.column == "gender"
    assert excinfo.value.value == "Other"


def test_unseen_level_zero_policy(split):
    recipe = Recipe("churn", [DummyStep(["gender"], unseen="zero")]).fit(split.train)
    test = split.test.copy()
    test["gender"] = test["gender"].astype(object)
    test.iloc[0, test.columns.get_loc("gender")] = "Other"

    baked = recipe.apply(test)

    assert baked["gender_Male"].iloc[0] == 0.0
    assert list(baked.columns) == list(recipe.apply(split.train).columns)


def test_unknown_unseen_policy_rejected():
    with pytest.raises(ValueError):
        DummyStep(["gender"], unseen="ignore")


def test_missing_predictor_on_apply_raises(fitted_recipe, split):
    with pytest.raises(MissingColumnError) as excinfo:
        fitted_recipe.apply(split.test.drop(columns=["tenure_months"]))

    assert excinfo.value.column == "tenure_months"


def test_extra_columns_are_ignored(fitted_recipe, split):
    test = split.test.assign(customer_id="x")

    assert "customer_id" not in fitted_recipe.apply(test).columns


def test_step_on_outcome_rejected():
    with pytest.raises(ValueError):
        Recipe("churn", [DummyStep(["churn"])])


def test_normalize_step_uses_training_statistics(split):
    recipe = Recipe("churn", [NormalizeStep(["tenure_months"])]).fit(split.train)

    baked_train = recipe.apply(split.train)
    baked_test = recipe.apply(split.test)

    assert baked_train["tenure_months"].mean() == pytest.approx(0.0, abs=1e-9)
    expected = (split.test["tenure_months"] - split.train["tenure_months"].mean()) / split.train["tenure_months"].std(ddof=0)
    assert baked_test["tenure_months"].to_numpy() == pytest.approx(expected.to_numpy())


def test_single_level_column_creates_no_indicators(customers):
    train = customers[customers["gender"] == "Male"]
    recipe = Recipe("churn", [DummyStep(["gender"])]).fit(train)

    assert not any(col.startswith("gender") for col in recipe.output_columns)


def test_from_config_unknown_step(config):
    config["recipe"]["steps"] = [{"step": "impute", "columns": ["gender"]}]

    with pytest.raises(ValueError):
        Recipe.from_config("churn", config)


def test_save_and_load(fitted_recipe, split, tmp_path):
    path = fitted_recipe.save(tmp_path / "recipe.joblib")

    loaded = FittedRecipe.load(path)

    pd.testing.assert_frame_equal(loaded.apply(split.test), fitted_recipe.apply(split.test))


def test_missing_value_in_training_column_raises(split):
    train = split.train.copy()
    train.iloc[[0, 1], train.columns.get_loc("gender")] = np.nan

    with pytest.raises(UnseenCategoryError) as excinfo:
        Recipe("churn", [DummyStep(["gender"])]).fit(train)

    assert excinfo.value.column == "gender"
    assert math.isnan(excinfo.value.value)


def test_column_without_levels_raises(split):
    train = split.train.assign(gender=np.nan)

    with pytest.raises(MissingColumnError) as excinfo:
        Recipe("churn", [DummyStep(["gender"])]).fit(train)

    assert excinfo.value.column == "gender"
