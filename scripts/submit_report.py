#!/usr/bin/env python3
"""Submit an incident report to a running deployment.

Evidence files go through the signed-upload flow: ``/sign-upload`` hands out a
key and a signed URL, the file is PUT to that URL, and the report references
the keys through ``evidence_keys``.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

import requests

from app.services.content_classifier import CONTENT_TYPES, classify, normalize_extension


def _safe_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def build_report_payload(
    incident_date: str,
    location: str,
    reporting_country: str,
    details: str,
    reporter_name: Optional[str] = None,
    phone: Optional[str] = None,
    evidence_keys: Optional[list[str]] = None,
) -> dict:
    payload = {
        'incident_date': incident_date,
        'location': location,
        'reporting_country': reporting_country,
        'details': details,
        'evidence_keys': list(evidence_keys or []),
    }
    if reporter_name:
        payload['reporter_name'] = reporter_name
    if phone:
        payload['phone'] = phone
    return payload


def describe_file(path: Path) -> tuple[str, str, bytes]:
    data = path.read_bytes()
    declared = CONTENT_TYPES.get(normalize_extension(path.suffix))
    classified = classify(data, declared)
    return classified.extension, classified.content_type, data


def upload_evidence(session: requests.Session, base_url: str, path: Path) -> str:
    extension, content_type, data = describe_file(path)
    signed = session.post(f"{base_url}/sign-upload", json={'ext': extension})
    body = _safe_json(signed) or {}
    if signed.status_code != 200 or not body.get('ok'):
        raise RuntimeError(f"sign-upload failed ({signed.status_code}): {signed.text[:500]}")
    put = session.put(
        body['signedUploadUrl'],
        data=data,
        headers={'Content-Type': content_type, 'x-upsert': 'true'},
    )
    if put.status_code >= 400:
        raise RuntimeError(f"evidence upload failed ({put.status_code}): {put.text[:500]}")
    return body['key']


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Submit an incident report with optional evidence')
    parser.add_argument('--base-url', default='http://127.0.0.1:8000/api')
    parser.add_argument('--date', required=True, help='incident date, YYYY-MM-DD')
    parser.add_argument('--location', required=True)
    parser.add_argument('--country', required=True, help='reporting country')
    parser.add_argument('--details', required=True)
    parser.add_argument('--name', default=None)
    parser.add_argument('--phone', default=None)
    parser.add_argument('--file', action='append', default=[], type=Path, help='evidence file (repeatable)')
    args = parser.parse_args(argv)

    base_url = args.base_url.rstrip('/')
    session = requests.Session()
    try:
        keys = [upload_evidence(session, base_url, path) for path in args.file]
        payload = build_report_payload(
            args.date,
            args.location,
            args.country,
            args.details,
            reporter_name=args.name,
            phone=args.phone,
            evidence_keys=keys,
        )
        response = session.post(f"{base_url}/report", json=payload)
    except (OSError, RuntimeError, requests.RequestException) as exc:
        print(f"Submission failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(_safe_json(response) or {'status': response.status_code}, ensure_ascii=False, indent=2))
    return 0 if response.status_code == 200 else 2


if __name__ == '__main__':
    raise SystemExit(main())
