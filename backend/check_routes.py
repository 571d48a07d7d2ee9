"""Log the auth and broker routes and fail if any public endpoint is missing."""
from brokerlink.core.logger import logger
from brokerlink.main import app

EXPECTED_ENDPOINTS = {
    ("POST", "/auth/signup"),
    ("POST", "/auth/login"),
    ("GET", "/auth/me"),
    ("POST", "/broker/upstox/credentials"),
    ("GET", "/broker/upstox/auth-url"),
    ("POST", "/broker/upstox/callback"),
    ("GET", "/broker/upstox/status"),
    ("DELETE", "/broker/upstox/disconnect"),
}


def registered_endpoints(application) -> set:
    endpoints = set()
    for route in application.routes:
        if not route.path.startswith(("/auth", "/broker")):
            continue
        for method in getattr(route, "methods", None) or ():
            endpoints.add((method, route.path))
    return endpoints


if __name__ == "__main__":
    endpoints = registered_endpoints(app)
    for method, path in sorted(endpoints, key=lambda item: (item[1], item[0])):
        logger.log_info("Registered route", {"method": method, "path": path})
    missing = EXPECTED_ENDPOINTS - endpoints
    if missing:
        logger.log_error("Missing routes", {"routes": sorted(f"{m} {p}" for m, p in missing)})
        raise SystemExit(1)
