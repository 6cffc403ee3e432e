"""Build results file written for out-of-band inspection."""

import os
from typing import Optional

from specgrid.constants import RESULTS_DIR, RESULTS_FILE


class ResultsService:
    """Owns `log/build_results.txt`."""

    def __init__(self, logger, results_dir: Optional[str] = None):
        self.logger = logger
        self.results_dir = results_dir or os.path.join(os.getcwd(), RESULTS_DIR)
        self.results_file = os.path.join(self.results_dir, RESULTS_FILE)

    def delete(self):
        if os.path.exists(self.results_file):
            os.remove(self.results_file)
            self.logger.debug("Removed stale results file: %s", self.results_file)

    def export(self, build_id: str, build_url: str):
        os.makedirs(self.results_dir, exist_ok=True)
        with open(self.results_file, "w", encoding="utf-8") as file_obj:
            file_obj.write(f"BUILD_ID={build_id}\nBUILD_URL={build_url}\n")
