"""
Churn Logistic Regression
=========================

Logistic regression walkthrough for predicting customer churn on the
imbalanced Telco customer dataset.

Modules:
    - config: YAML settings and project paths
    - data: Data loading and stratified splitting
    - features: Fit-then-apply preprocessing recipes
    - models: Logistic regression training and evaluation
    - reporting: Exploratory summaries and charts
    - utils: Utility functions
"""

__version__ = "1.0.0"
