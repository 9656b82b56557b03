import os
import csv
import sys
import time
import argparse
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List

from securescan.config import settings
from securescan.core.eml_loader import EmlLoader, EmlParseError
from securescan.logging_config import configure_logging
from securescan.services.analysis_service import AnalysisService

logger = logging.getLogger(__name__)

# ================= DEFAULTS =================
OUTPUT_CSV = "scan_results.csv"
MAX_WORKERS = 4
SCAN_EXTENSIONS = (".eml", ".txt")
CSV_FIELDS = ["file", "status", "risk_score", "risk_level", "confidence", "indicators", "summary"]
# ============================================


def scan_file(file_path: str, service: AnalysisService, loader: EmlLoader) -> Dict:
    """Scan one file in-process and return a CSV row"""
    file_name = os.path.basename(file_path)
    try:
        with open(file_path, "rb") as f:
            raw = f.read()
        loaded = loader.load(raw, file_name)
        outcome = service.analyze(loaded.email, raw_text=loaded.raw_text,
                                  parse_headers=loaded.is_eml)
    except (OSError, EmlParseError) as e:
        logger.warning(f"{file_name}: {e}")
        return {"file": file_name, "status": "ERROR", "summary": str(e)}

    result = outcome.result
    return {
        "file": file_name,
        "status": "SUCCESS",
        "risk_score": result.risk_score,
        "risk_level": result.risk_level.label,
        "confidence": result.confidence_percent,
        "indicators": len(result.indicators),
        "summary": result.summary,
    }


def collect_files(paths: List[str]) -> List[str]:
    files = []
    for p in paths:
        if os.path.isfile(p):
            files.append(p)
        elif os.path.isdir(p):
            for name in sorted(os.listdir(p)):
                full = os.path.join(p, name)
                if os.path.isfile(full) and name.lower().endswith(SCAN_EXTENSIONS):
                    files.append(full)
        else:
            logger.warning(f"Skipping {p}: not a file or directory")
    return files


def scan_files(files: List[str], max_workers: int = MAX_WORKERS) -> List[Dict]:
    """Scan files concurrently; rows come back in input order"""
    service = AnalysisService()
    loader = EmlLoader()
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(scan_file, f, service, loader) for f in files]
        return [future.result() for future in futures]


def write_csv(rows: List[Dict], output_path: str) -> None:
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)


def main(argv: List[str] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="securescan-batch",
        description="Scan a batch of .eml/.txt files for phishing indicators.",
    )
    parser.add_argument("paths", nargs="+", help="Files or directories to scan")
    parser.add_argument("-o", "--output", default=OUTPUT_CSV, help="CSV report path")
    parser.add_argument("-w", "--workers", type=int, default=MAX_WORKERS)
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)

    files = collect_files(args.paths)
    if not files:
        print("No .eml or .txt files found.", file=sys.stderr)
        return 1

    start_time = time.time()
    rows = scan_files(files, args.workers)
    write_csv(rows, args.output)

    ok = [r for r in rows if r["status"] == "SUCCESS"]
    flagged = sum(1 for r in ok if r["risk_level"] != "Safe")
    print(f"Scanned {len(ok)}/{len(rows)} files in {time.time() - start_time:.2f}s, "
          f"{flagged} flagged. Report written to {args.output}", file=sys.stderr)
    return 0 if len(ok) == len(rows) else 2


if __name__ == "__main__":
    sys.exit(main())
