"""Node Placement Simulator.

Simulates batch-job placement onto a fixed pool of worker nodes under FCFS,
weighted smallest-first and shortest-duration-first policies, and reports
per-node CPU and memory utilization as CSV and Prometheus metrics.
"""

__version__ = "0.1.0"
