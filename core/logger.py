import json
import logging
from dataclasses import asdict
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Optional

from utils.helpers import format_option_set


class MonitorLogger:
    """
    Handles all logging operations for one monitor run:
    - Narration log (each phase outcome)
    - Action logs (option dumps, selections, clicks, extractions)
    - Error logs
    - Final run summary
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        # Create timestamped session directory
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.session_dir = self.output_dir / f"session_{timestamp}"
        self.session_dir.mkdir(exist_ok=True)

        # Initialize log files
        self.main_log_file = self.session_dir / "monitor_log.txt"
        self.action_log_file = self.session_dir / "actions_log.jsonl"  # JSON Lines format
        self.error_log_file = self.session_dir / "errors_log.txt"
        self.summary_file = self.session_dir / "run_summary.json"

        self.action_counter = 0
        self.error_counter = 0

        self._setup_python_logging()

        self.log_info("=" * 80)
        self.log_info(f"MONITOR SESSION STARTED: {timestamp}")
        self.log_info("=" * 80)

    def _setup_python_logging(self):
        """Route error records to this session's error log and stderr"""
        self.logger = logging.getLogger("seat_monitor")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
        for handler in (logging.FileHandler(self.error_log_file, encoding='utf-8'), logging.StreamHandler()):
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_info(self, message: str):
        """Log informational message to main log file"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        log_entry = f"[{timestamp}] {message}\n"
        with open(self.main_log_file, 'a', encoding='utf-8') as f:
            f.write(log_entry)

    def log_action(self, action_type: str, details: Dict):
        """Log structured action data in JSON Lines format"""
        self.action_counter += 1
        action_entry = {
            "action_id": self.action_counter,
            "timestamp": datetime.now().isoformat(),
            "action_type": action_type,
            "details": details
        }

        with open(self.action_log_file, 'a', encoding='utf-8') as f:
            f.write(json.dumps(action_entry, ensure_ascii=False) + '\n')

        self.log_info(f"ACTION #{self.action_counter}: {action_type} - {json.dumps(details, ensure_ascii=False)}")

    def log_error(self, error_type: str, error_message: str, context: Optional[Dict] = None):
        """Log error with context"""
        self.error_counter += 1
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        error_entry = f"\n[{timestamp}] ERROR: {error_type}\n"
        error_entry += f"Message: {error_message}\n"
        if context:
            error_entry += f"Context: {json.dumps(context, indent=2, ensure_ascii=False)}\n"
        error_entry += "-" * 80 + "\n"

        with open(self.error_log_file, 'a', encoding='utf-8') as f:
            f.write(error_entry)

        self.logger.error(f"{error_type}: {error_message}")

    def log_option_set(self, field_name: str, source: str, options: List):
        """Dump the full option set of one dropdown so site drift can be diagnosed"""
        self.log_action("option_set", {
            "field": field_name,
            "source": source,
            "count": len(options),
            "options": [{"value": o.value, "label": o.label} for o in options],
            "summary": format_option_set(options)
        })

    def log_selection(self, field_name: str, desired_label: str, outcome: str,
                      matched: Optional[str] = None, source: str = "", attempt: int = 0):
        self.log_action("selection", {
            "field": field_name,
            "desired": desired_label,
            "outcome": outcome,
            "matched": matched,
            "source": source,
            "attempt": attempt
        })

    def log_extraction(self, mode: str, header_row: Optional[int], column: Optional[int],
                       rows: int, records: int):
        self.log_action("extraction", {
            "mode": mode,
            "header_row": header_row,
            "column": column,
            "rows_seen": rows,
            "records": records
        })

    def save_run_summary(self, report, exit_code: int, stats: Optional[Dict] = None):
        """Save the consolidated report and run statistics"""
        with open(self.summary_file, 'w', encoding='utf-8') as f:
            json.dump({
                "session_ended": datetime.now().isoformat(),
                "exit_code": exit_code,
                "statistics": stats or {},
                "report": asdict(report) if report is not None else None,
                "total_actions": self.action_counter,
                "total_errors": self.error_counter
            }, f, indent=2, ensure_ascii=False)

        self.log_info("=" * 80)
        self.log_info("SESSION COMPLETED")
        self.log_info(f"Exit code: {exit_code}")
        self.log_info(f"Total actions logged: {self.action_counter}")
        self.log_info("=" * 80)
