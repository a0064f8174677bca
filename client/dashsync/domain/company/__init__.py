"""Company dashboard live counters."""
