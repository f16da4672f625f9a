#!/usr/bin/env python3
"""
Basic usage examples for the chipster client library.

This script logs in, creates a session, uploads a file into a new dataset,
reads it back and deletes the session.
"""

import sys

from chipster_client import HttpError, RestClient, Session, get_logger

log = get_logger(__file__)


def main(service_locator: str, username: str, password: str, file: str) -> int:
    """Run the example against the given installation."""
    with RestClient(True, service_locator_uri=service_locator) as client:
        try:
            client.set_token(client.get_token(username, password))
        except HttpError as e:
            log.error("login failed", e)
            return 1

        session_id = client.post_session(Session(name="basic usage example"))
        log.info("created session", session_id)
        try:
            dataset_id = client.post_dataset(session_id, {"name": file})
            client.upload_file(session_id, dataset_id, file)
            log.info("uploaded", file)

            for dataset in client.get_datasets(session_id):
                log.info("dataset", dataset)

            print(client.get_file(session_id, dataset_id, 200))
        finally:
            client.delete_session(session_id)
            log.info("deleted session", session_id)
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 5:
        print("usage: basic_usage.py SERVICE_LOCATOR USERNAME PASSWORD FILE")
        sys.exit(2)
    sys.exit(main(*sys.argv[1:]))
