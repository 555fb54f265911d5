"""
estimation -- from-scratch estimators for the analytics exercises.

Each sub-module implements one method with numpy / scipy: difference in
means and probit for a field experiment, Poisson regression by MLE,
multinomial logit by MLE and by Metropolis-Hastings, and LLN / CLT
simulations. statsmodels appears only as the GLM comparison.
"""

from .utils import ols_fit, add_const
from . import mle
from . import binary_outcomes
from . import experiment
from . import simulation
from . import poisson
from . import mcmc
from . import mnl

__version__ = "0.1.0"
