"""Configuration settings for TrailNav."""

CONFIG = {
    "arrival_threshold": 30,  # meters - step counts as reached inside this radius
    "gps_poll_interval": 3,  # seconds
    "gps_fix_timeout": 30,  # seconds - termux-location call timeout
    "fix_stale_timeout": 30,  # seconds without a fix before warning the user
    "log_interval": 10,  # seconds between STATE log entries
    # Directions provider
    "directions_url": "https://maps.googleapis.com/maps/api/directions/json",
    "directions_timeout": 15,  # seconds per request
    "directions_retry_time": 30,  # seconds - total budget for retrying timeouts
    "directions_language": "en",
    "default_travel_mode": "driving",
    "travel_modes": {"driving", "walking", "bicycling", "transit"},
    # Voice guidance
    "speech_rate": 150,  # espeak words per minute
    "approach_warning_distance": 100,  # meters - one "approaching" prompt per step
    "progress_announce_interval": 60,  # seconds between spoken progress updates
    "progress_announce_delta": 200,  # meters of change before another spoken update
    "console_progress_delta": 25,  # meters of change before another console line
}
