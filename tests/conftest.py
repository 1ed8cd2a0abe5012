import copy

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from churn_logit.config import get_config
from churn_logit.data import BinaryOutcome, DataLoader, split_data
from churn_logit.features import Recipe
from churn_logit.models import ModelTrainer


def make_raw_customers(n: int = 1000, seed: int = 0) -> pd.DataFrame:
    """Telco-shaped raw data: original headers, 0/1 SeniorCitizen, Yes/No Churn."""
    rng = np.random.default_rng(seed)
    senior = rng.binomial(1, 0.16, n)
    tenure = rng.integers(0, 73, n)
    monthly = np.round(rng.uniform(18.25, 118.75, n), 2)

    log_odds = 0.5 - 0.05 * tenure + 0.03 * (monthly - 65) + 0.6 * senior
    churn = np.where(rng.random(n) < 1 / (1 + np.exp(-log_odds)), "Yes", "No")

    return pd.DataFrame({
        "customerID": [f"{i:04d}-CUST" for i in range(n)],
        "gender": rng.choice(["Female", "Male"], n),
        "SeniorCitizen": senior,
        "Partner": rng.choice(["Yes", "No"], n),
        "tenure": tenure,
        "PhoneService": rng.choice(["Yes", "No"], n),
        "MonthlyCharges": monthly,
        "TotalCharges": (tenure * monthly).round(2).astype(str),
        "Churn": churn,
    })


@pytest.fixture
def config():
    return copy.deepcopy(get_config())


@pytest.fixture
def outcome(config):
    return BinaryOutcome.from_config(config)


@pytest.fixture
def raw_customers():
    return make_raw_customers()


@pytest.fixture
def customers(config, raw_customers):
    return DataLoader(config).prepare(raw_customers)


@pytest.fixture
def split(customers, outcome):
    return split_data(customers, ratio=0.7, seed=789, strata=outcome.column)


@pytest.fixture
def fitted_recipe(config, split, outcome):
    return Recipe.from_config(outcome.column, config).fit(split.train)


@pytest.fixture
def model(config, split, fitted_recipe, outcome):
    return ModelTrainer(config).train(fitted_recipe.apply(split.train), outcome)
