# SPDX-License-Identifier: Apache-2.0

"""
Barangay Registry Analytics API - Flask Application Entry Point

This module initializes the Flask application with OpenAPI 3.0 support,
configures middleware, and wires the reporting service to the population
registry and the report cache.
"""

import os
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag
from observability.config import setup_observability
from observability.middleware import add_observability_middleware

# Import middleware and services
from middleware.cors import CORSMiddleware
from middleware.error_handler import ErrorHandlerMiddleware
from middleware.auth import AuthMiddleware
from services.hal import HalFormatter
from services.auth import AuthService
from services.registry import MongoRegistryStore
from services.cache import ReportCache, create_report_cache
from services.reporting import ReportingService, ReportTTLs

SERVICE_NAME = "barangay-analytics-api"
SERVICE_VERSION = "1.0.0"

# OpenAPI info
info = Info(
    title="Barangay Registry Analytics API",
    version=SERVICE_VERSION,
    description="Scoped population reports and trends for the barangay registry dashboard"
)

# API tags for organization
tags = [
    Tag(name="Dashboard", description="Population reports and trends"),
    Tag(name="Health", description="System health and status")
]


def load_config(app):
    """Copy environment configuration into app.config."""
    # Environment configuration
    app.config['ENVIRONMENT'] = os.getenv('ENVIRONMENT', 'development')
    app.config['ENV'] = app.config['ENVIRONMENT']
    app.config['DEBUG'] = app.config['ENVIRONMENT'] == 'development'

    # Registry configuration
    app.config['MONGODB_URI'] = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/barangay_registry')
    app.config['MONGODB_DATABASE'] = os.getenv('MONGODB_DATABASE', 'barangay_registry')
    app.config['REGISTRY_RETRY_AFTER_SECONDS'] = int(os.getenv('REGISTRY_RETRY_AFTER_SECONDS', '30'))

    # Feature flags
    app.config['OTEL_ENABLED'] = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'

    # API configuration
    app.config['BASE_URL'] = os.getenv('BASE_URL', 'http://localhost:5000')


def create_app(registry=None, report_cache: ReportCache = None,
               auth_service: AuthService = None, ttl: ReportTTLs = None) -> OpenAPI:
    """
    Build the Flask application.

    Args:
        registry: RegistryReader; defaults to the MongoDB registry store
        report_cache: ReportCache; defaults to the backend chosen by environment
        auth_service: Token validation service
        ttl: Report cache lifetimes

    Returns:
        Configured OpenAPI (Flask) application
    """
    app = OpenAPI(__name__, info=info)
    load_config(app)

    # Add observability middleware
    add_observability_middleware(app, instrument=app.config['OTEL_ENABLED'])

    # Initialize services
    if registry is None:
        registry = MongoRegistryStore(app.config['MONGODB_URI'], app.config['MONGODB_DATABASE'])
    if report_cache is None:
        report_cache = create_report_cache()
    reporting_service = ReportingService(registry, report_cache, ttl or ReportTTLs.from_env())
    auth_service = auth_service or AuthService()

    # Initialize middleware
    hal_formatter = HalFormatter(app.config['BASE_URL'])
    auth_middleware = AuthMiddleware(auth_service)
    ErrorHandlerMiddleware(app, app.config['BASE_URL'])
    CORSMiddleware(app, allow_credentials=True)

    # Make services available to routes
    app.registry = registry
    app.report_cache = report_cache
    app.reporting_service = reporting_service
    app.auth_service = auth_service
    app.auth_middleware = auth_middleware
    app.hal_formatter = hal_formatter

    # Register routes
    from routes.dashboard import dashboard_bp
    app.register_api(dashboard_bp)

    @app.get('/api/healthz', tags=[tags[1]])
    def health_check():
        """Registry and report cache health."""
        health_data = reporting_service.health_check()
        health_data.update({
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": app.config['ENVIRONMENT']
        })

        # Degraded still serves reports, only slower
        status_code = 503 if health_data["status"] == "unhealthy" else 200

        health_data['_links'] = {
            'self': hal_formatter.builder.link_builder.build_self_link('/api/healthz').model_dump(exclude_none=True)
        }
        return jsonify(health_data), status_code

    return app


# Initialize observability first
setup_observability()

app = create_app()


if __name__ == '__main__':
    # Development server
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
