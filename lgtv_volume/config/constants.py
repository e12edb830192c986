"""All constants for LG TV volume control - single source of truth."""

from pathlib import Path

# === Network ===
DEFAULT_PORT = 3000            # webOS SSAP websocket (ws://)
DEFAULT_SECURE_PORT = 3001     # webOS SSAP websocket (wss://), newer firmware

# === Local IPC ===
DEFAULT_PIPE_PATH = "/tmp/lgtv-pipe"
DEFAULT_PIPE_MODE = 0o666

# === Audio device ===
# Name reported by CoreAudio for the LG TV when used as an audio sink
DEFAULT_TARGET_DEVICE = "LG Monitor"
PROBE_HELPER_NAME = "get_audio_device"
PROBE_HELPER_PATHS = [
    Path.home() / ".local" / "bin" / PROBE_HELPER_NAME,
    Path(PROBE_HELPER_NAME),   # resolved against the working directory
]
DEFAULT_PROBE_TIMEOUT = 0.5

# === Pairing ===
DEFAULT_KEY_FILE = str(Path.home() / ".lgtv_key")
DEFAULT_PAIRING_TIMEOUT = 60
DEFAULT_CLIENT_NAME = "LG TV Volume Bridge"

# === Session timing (seconds) ===
DEFAULT_RECONNECT_INTERVAL = 5
DEFAULT_CONNECT_TIMEOUT = 5
DEFAULT_SEND_TIMEOUT = 1.0
DEFAULT_PING_INTERVAL = 5
DEFAULT_PING_TIMEOUT = 5
