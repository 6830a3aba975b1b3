"""
Climate CV - forecast validation for monthly climatic series

Modules:
- climate_cv: Holdout + rolling-origin evaluation engine, model adapters, CLI
"""
