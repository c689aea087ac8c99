"""
Tests package for the az-keycloak Pulumi program.

Contains:
- unit/: Unit tests run against Pulumi mocks, no Azure access required
"""
