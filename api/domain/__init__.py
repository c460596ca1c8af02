# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the barangay registry analytics API.

This package contains the reporting core: scope resolution, resident
classification, aggregation and trend generation. Apart from reads through
the RegistryReader port, every function is free of side effects and testable
without external services.
"""
