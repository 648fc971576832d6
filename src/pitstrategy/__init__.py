"""
Pit Strategy Optimizer: Tyre Wear Modeling + Pit Stop Optimization

A deterministic race strategy engine with:
- Compound-specific tyre wear curves scaled by track conditions
- Lap time model with fuel burn and out-lap penalties
- Dynamic-programming stint optimizer, cross-checked by enumeration
- Named race configurations, HTML reports and a Streamlit dashboard

Author: João Pedro Cunha
License: MIT
"""

__version__ = "0.1.0"
__author__ = "João Pedro Cunha"

from pitstrategy import (
    brute_force,
    candidates,
    compounds,
    config,
    degrade_model,
    laptime,
    optimizer,
    orchestrator,
    simulator,
    store,
)

__all__ = [
    "brute_force",
    "candidates",
    "compounds",
    "config",
    "degrade_model",
    "laptime",
    "optimizer",
    "orchestrator",
    "simulator",
    "store",
]
