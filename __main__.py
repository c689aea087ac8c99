"""Pulumi program entry point for the az-keycloak stack."""

from az_keycloak.stack import main

main()
