"""
Test suite for the CoMID data model

Contains:
- tests/unit/          : Unit tests for models, codecs, contracts, config and logging
"""
