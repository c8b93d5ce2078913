"""Offline replay driver for alpha models.

Feeds recorded price observations, universe changes and scheduler ticks
into an alpha model in time order and collects the emitted alphas.
Uses alpha_core/ for all business logic.
"""
