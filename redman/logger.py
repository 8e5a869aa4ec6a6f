"""
Minimal logging context for Redman.
Single place to control all output: screen + file, with flush.
"""
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

_PREFIX_STYLES = {
    "[INFO]": "cyan",
    "[WARNING]": "yellow",
    "[ERROR]": "red",
    "[DEBUG]": "grey50",
}


class RedmanLogger:
    """Minimal logger: print to screen + file, always flush"""

    def __init__(self, log_file: Optional[Path] = None, debug: bool = False, console: Console | None = None):
        self.log_file = log_file
        self._file_handle = None
        self._start_time = datetime.now()
        self.debug_mode = debug
        self._console = console or Console(highlight=False)
        self._rate_limit_note_trackers: set[str] = set()

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_file, 'w', buffering=1, encoding='utf-8')  # Line buffered, UTF-8

            from redman import __version__
            self._write_file(f"({self._start_time.strftime('%H:%M:%S')}  Started Redman {__version__})")

    def _screen_text(self, output: str) -> Text:
        text = Text(output)
        for marker, style in _PREFIX_STYLES.items():
            start = output.find(marker)
            if start != -1:
                text.stylize(style, start, start + len(marker))
        if output.lstrip().startswith("✓"):
            text.stylize("green", 0, output.index("✓") + 1)
        elif output.lstrip().startswith("✗"):
            text.stylize("red", 0, output.index("✗") + 1)
        return text

    def _write_file(self, output: str) -> None:
        if self._file_handle:
            self._file_handle.write(output + "\n")
            self._file_handle.flush()
            os.fsync(self._file_handle.fileno())

    def log(self, msg: str, prefix: str = ""):
        """Log to screen and file"""
        output = f"{prefix}{msg}" if prefix else msg
        self._console.print(self._screen_text(output))
        self._write_file(output)

    def info(self, msg: str):
        """Info message"""
        self.log(msg)

    def warning(self, msg: str):
        """Warning message"""
        self.log(msg, "[WARNING] ")

    def error(self, msg: str):
        """Error message"""
        self.log(msg, "[ERROR] ")

    def debug(self, msg: str):
        """Debug message (only shown in debug mode)"""
        if self.debug_mode:
            timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
            self.log(msg, f"[{timestamp}] [DEBUG] ")

    def api_wait(self, tracker: str, seconds: float):
        """Note once per tracker that request pacing is active."""
        _ = seconds
        tracker_key = tracker.upper()
        if tracker_key in self._rate_limit_note_trackers:
            return
        self._rate_limit_note_trackers.add(tracker_key)
        self.log(f"API rate limiting active for {tracker_key}; request pacing is enabled.", "[INFO] ")

    def api_wait_debug(self, tracker: str, seconds: float):
        """Log API wait details (debug mode only)."""
        self.debug(f"Rate limiting detail: waited {seconds:.3f}s before next {tracker} API call")

    def api_request(self, method: str, url: str, params: dict):
        """Log API request (debug mode only)"""
        if self.debug_mode:
            timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
            self.log(f"API Request: {method} {url}", f"[{timestamp}] ")
            if params:
                self.log(f"  Params: {json.dumps(params, indent=2)}", f"[{timestamp}] ")

    def api_response(self, status: int, data: dict, elapsed_ms: float):
        """Log API response (debug mode only)"""
        if self.debug_mode:
            timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
            self.log(f"API Response ({elapsed_ms:.0f}ms): Status {status}", f"[{timestamp}] ")
            if data:
                # Truncate large responses
                data_str = json.dumps(data, indent=2)
                if len(data_str) > 5000:
                    data_str = data_str[:5000] + "\n  ... (truncated)"
                self.log(f"  Data: {data_str}", f"[{timestamp}] ")

    def close(self):
        """Close file handle with goodbye message"""
        if self._file_handle:
            end_time = datetime.now()
            elapsed = end_time - self._start_time
            self._write_file(
                f"({end_time.strftime('%H:%M:%S')}  Ended session, elapsed {elapsed.total_seconds():.1f}s)"
            )
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


# Global instance (set by the CLI)
_logger: Optional[RedmanLogger] = None


def set_logger(logger: RedmanLogger):
    """Set global logger instance"""
    global _logger
    _logger = logger


def get_logger() -> RedmanLogger:
    """Get global logger instance"""
    global _logger
    if _logger is None:
        # Fallback: create stdout-only logger
        _logger = RedmanLogger()
    return _logger


# Convenience functions
def log(msg: str):
    get_logger().log(msg)


def info(msg: str):
    get_logger().info(msg)


def warning(msg: str):
    get_logger().warning(msg)


def error(msg: str):
    get_logger().error(msg)


def debug(msg: str):
    get_logger().debug(msg)
