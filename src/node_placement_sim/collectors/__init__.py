"""Collectors package for simulation metrics.

Contains collector implementations for node utilization and pending jobs.
Each collector module provides fetch and generate_metrics functions that
can be composed with the SimulationCollector class.
"""
