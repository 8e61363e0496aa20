"""Settings package for the equipment rental service.

`base.py` holds the configuration shared by every environment. `dev.py`,
`prod.py` and `test.py` extend it with environment specific overrides.
"""
