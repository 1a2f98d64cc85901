"""
Per-run outcome tracking and the end-of-crawl summary.
"""

import time
from datetime import timedelta

from tabulate import tabulate


class OutcomeLedger:
    """
    Successes and failures of one crawl run.
    Only the coordinating thread mutates the ledger.
    """

    def __init__(self):
        self.start_time = time.time()
        self.successes = set()
        self.failures = {}
        self.artifacts = []
        self.skipped = 0

    def record_success(self, url, artifact=None):
        self.failures.pop(url, None)
        self.successes.add(url)
        if artifact is None:
            self.skipped += 1
        else:
            self.artifacts.append(artifact)

    def record_failure(self, url, reason):
        self.successes.discard(url)
        self.failures[url] = reason

    @property
    def has_failures(self):
        return bool(self.failures)

    @property
    def total_bytes(self):
        return sum(a.size for a in self.artifacts)

    def display_summary(self, visited_count, output_dir, ignore_errors=False):
        """
        FLOW: Print totals table -> Enumerate failures -> Note ignore-errors mode -> Return had-failures.
        """
        elapsed = time.time() - self.start_time

        print("\n" + "=" * 80)
        print("CRAWL COMPLETED - SUMMARY")
        print("=" * 80)
        rows = [
            ["Pages visited", visited_count],
            ["Successful", len(self.successes)],
            ["Saved", len(self.artifacts)],
            ["Skipped (non-HTML)", self.skipped],
            ["Failed", len(self.failures)],
            ["Data written", f"{self.total_bytes / 1024:.1f} KB"],
            ["Duration", str(timedelta(seconds=int(elapsed)))],
            ["Output directory", output_dir],
        ]
        print(tabulate(rows, tablefmt="simple"))

        if self.failures:
            print(f"\nFAILED PAGES ({len(self.failures)}):")
            failure_rows = [[i, url, reason] for i, (url, reason) in enumerate(sorted(self.failures.items()), 1)]
            print(tabulate(failure_rows, headers=["#", "URL", "Reason"], tablefmt="simple"))
            if ignore_errors:
                print("\nErrors ignored (--ignore-errors); exit status is not affected.")
        print("=" * 80)

        return self.has_failures
