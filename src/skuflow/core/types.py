"""Constants used across SkuFlow."""

INITIAL_SOURCE = "initial"  # task source meaning "every item in the run"
