"""
portfolio_api.api.routers

HTTP routers. Route-level access control is applied by the authorization
middleware from the policy table, not by the routers themselves.
"""

# Package marker.
