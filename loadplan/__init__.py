"""
loadplan - Composable, validated HTTP load-test plans.

Describe request steps, group them into chains and scenarios, attach an
injection profile and a protocol, and hand the immutable plan to a load
generation engine. Invalid configuration fails early with ConfigurationError.
"""

from .chains import ChainBuilder, RequestBuilder
from .checks import json_path, status
from .exceptions import ConfigurationError, ExecutionError, LoadPlanError
from .injection import (
    constant_concurrent,
    ramp_concurrent,
    ramp_up,
    spike,
    steady,
    stress_ramp,
)
from .models import HttpMethod
from .population import PlanBuilder, PopulationBuilder
from .protocol import ProtocolBuilder
from .scenarios import ScenarioBuilder

__all__ = [
    "__version__",
    "ChainBuilder",
    "ConfigurationError",
    "ExecutionError",
    "HttpMethod",
    "LoadPlanError",
    "PlanBuilder",
    "PopulationBuilder",
    "ProtocolBuilder",
    "RequestBuilder",
    "ScenarioBuilder",
    "constant_concurrent",
    "json_path",
    "ramp_concurrent",
    "ramp_up",
    "spike",
    "status",
    "steady",
    "stress_ramp",
]

__version__ = "1.0.0"
