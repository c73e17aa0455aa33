"""
Ready-made setups built on the domain configuration API.
"""
