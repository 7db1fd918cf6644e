"""
Data ingestion module for Proximity Monitor.

Decodes dump1090 documents handed over by the external poller and feeds
each reading through the tracking engine.
"""

from proximity_monitor.ingestion.feed import parse_aircraft_payload
from proximity_monitor.ingestion.pipeline import IngestionPipeline

__all__ = ['parse_aircraft_payload', 'IngestionPipeline']
