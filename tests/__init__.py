# ChainSim Test Suite
"""
Test suite including:
- Unit tests per engine module
- Chain integrity properties (edit ripple, tamper detection)
- Integration tests (end-to-end scenarios, error results)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
