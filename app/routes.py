"""Flask routes for the Sunrise Alarm API."""

from flask import Blueprint, current_app, jsonify, request

from sunrise.errors import InvalidCoordinates
from sunrise.models import SavedLocation, TimingPolicy
from app.validation import (
    validate_coordinates, validate_delay, validate_location_name, validate_policy
)

main_bp = Blueprint("main", __name__)

# Coordinator error kind -> HTTP status
ERROR_STATUS = {
    "location_unavailable": 409,
    "network_failure": 502,
    "timeout": 504,
    "malformed_response": 502,
    "scheduler_rejected": 503,
}


def get_coordinator():
    return current_app.extensions["coordinator"]


def status_payload() -> dict:
    """Coordinator snapshot plus the stored preferences."""
    coordinator = get_coordinator()
    selected = coordinator.locations.selected
    payload = coordinator.snapshot()
    payload["selected_location"] = selected.to_dict() if selected else None
    payload["policy"] = coordinator.locations.timing.to_dict()
    payload["auto_repeat"] = coordinator.locations.auto_repeat
    return payload


def operation_response(success: bool):
    """Shape the result of a coordinator operation."""
    coordinator = get_coordinator()
    if success:
        return jsonify({"status": "ok", **status_payload()})

    error = coordinator.last_error
    return jsonify({
        "status": "error",
        "error": error.to_dict() if error else None,
        **status_payload(),
    }), ERROR_STATUS.get(error.kind if error else "", 500)


@main_bp.route("/api/status")
def get_status():
    """Current alarm state, last sun times and last error."""
    return jsonify(status_payload())


# --- Alarm API ---

@main_bp.route("/api/alarm", methods=["POST"])
def activate_alarm():
    """Arm tomorrow's alarm for the selected location and stored timing."""
    return operation_response(get_coordinator().activate())


@main_bp.route("/api/alarm", methods=["DELETE"])
def cancel_alarm():
    """Cancel the armed alarm."""
    return operation_response(get_coordinator().cancel())


@main_bp.route("/api/alarm/refresh", methods=["POST"])
def refresh_alarm():
    """Retry after an error, or refresh the displayed sun times."""
    return operation_response(get_coordinator().refresh())


@main_bp.route("/api/alarm/test", methods=["POST"])
def test_alarm():
    """Arm a test alarm a few seconds from now."""
    data = request.get_json(silent=True) or {}

    if "delay_seconds" in data:
        validation = validate_delay(data["delay_seconds"])
        if not validation.is_valid:
            return jsonify({"status": "error", "message": validation.error_message}), 400
        return operation_response(get_coordinator().schedule_test_alarm(int(data["delay_seconds"])))

    return operation_response(get_coordinator().schedule_test_alarm())


# --- Preferences API ---

@main_bp.route("/api/policies")
def list_policies():
    """Timing policies with their descriptions."""
    return jsonify({"policies": [p.to_dict() for p in TimingPolicy]})


@main_bp.route("/api/settings", methods=["GET"])
def get_settings():
    """Stored timing policy and auto-repeat flag."""
    locations = get_coordinator().locations
    return jsonify({
        "policy": locations.timing.to_dict(),
        "auto_repeat": locations.auto_repeat,
    })


@main_bp.route("/api/settings", methods=["PUT"])
def update_settings():
    """Update the timing policy and/or the auto-repeat flag."""
    data = request.get_json(silent=True) or {}
    locations = get_coordinator().locations

    if "policy" in data:
        validation = validate_policy(data["policy"])
        if not validation.is_valid:
            return jsonify({"status": "error", "message": validation.error_message}), 400

    if "auto_repeat" in data and not isinstance(data["auto_repeat"], bool):
        return jsonify({"status": "error", "message": "auto_repeat must be true or false"}), 400

    if "policy" in data:
        locations.timing = TimingPolicy.parse(data["policy"])
    if "auto_repeat" in data:
        locations.auto_repeat = data["auto_repeat"]

    return jsonify({
        "status": "ok",
        "policy": locations.timing.to_dict(),
        "auto_repeat": locations.auto_repeat,
    })


# --- Locations API ---

@main_bp.route("/api/locations", methods=["GET"])
def list_locations():
    """All saved locations."""
    locations = get_coordinator().locations.locations()
    return jsonify({"locations": [loc.to_dict() for loc in locations]})


@main_bp.route("/api/locations", methods=["POST"])
def add_location():
    """Save a location from a name and manual coordinates."""
    data = request.get_json(silent=True) or {}

    validation = validate_location_name(data.get("name"))
    if not validation.is_valid:
        return jsonify({"status": "error", "message": validation.error_message}), 400

    validation = validate_coordinates(data.get("latitude"), data.get("longitude"))
    if not validation.is_valid:
        return jsonify({
            "status": "error",
            "kind": validation.kind,
            "message": validation.error_message,
        }), 400

    coordinator = get_coordinator()
    try:
        location = SavedLocation(
            display_name=data["name"].strip(),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            is_selected=bool(data.get("select", False)),
        )
    except InvalidCoordinates as e:
        return jsonify({"status": "error", "kind": e.kind, "message": e.message}), 400

    location = coordinator.locations.add(location)
    if location.is_selected:
        coordinator.update_sun_times()

    return jsonify({"status": "ok", "location": location.to_dict()})


@main_bp.route("/api/locations/<identifier>/select", methods=["POST"])
def select_location(identifier):
    """Select a location and refresh the displayed sun times for it."""
    coordinator = get_coordinator()
    location = coordinator.locations.select(identifier)
    if location is None:
        return jsonify({"error": "Location not found"}), 404

    coordinator.update_sun_times()
    return jsonify({"status": "ok", "location": location.to_dict(), **status_payload()})


@main_bp.route("/api/locations/<identifier>", methods=["DELETE"])
def delete_location(identifier):
    """Delete a saved location."""
    if not get_coordinator().locations.delete(identifier):
        return jsonify({"error": "Location not found"}), 404
    return jsonify({"status": "ok"})
