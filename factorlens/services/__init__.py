"""Business services for holdings, authentication and factor analysis."""
