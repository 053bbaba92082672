"""
tablestore.api.routers

Router package.
"""

# Package marker; routers are imported directly from submodules.
