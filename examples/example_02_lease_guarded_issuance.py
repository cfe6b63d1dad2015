"""Example 02: Guarding certificate issuance with leases.

This example demonstrates:
- several workers (threads with their own store instances) racing for one lease
- LockedError for the losers; retry/backoff is the caller's choice
- store.locked() to always release after the critical section
- re-checking after acquiring, since another worker may already have issued
"""

import os
import random
import threading
import time

from certstore import LockedError, connect

DB_PATH = "tmp/certstore_leases.db"
DOMAIN = "example.com"


def issue_certificate(worker: int) -> None:
    store = connect(DB_PATH, lock_timeout="30s")
    cert_key = f"certificates/acme/{DOMAIN}/{DOMAIN}.crt"
    try:
        for attempt in range(5):
            try:
                with store.locked(f"issue_cert_{DOMAIN}"):
                    if store.exists(cert_key):
                        print(f"worker {worker}: already issued, nothing to do")
                        return
                    print(f"worker {worker}: issuing certificate")
                    time.sleep(0.2)
                    store.put(cert_key, f"issued by worker {worker}".encode())
                    return
            except LockedError:
                delay = 0.1 * (2**attempt) + random.uniform(0, 0.05)
                print(f"worker {worker}: lease busy, retrying in {delay:.2f}s")
                time.sleep(delay)
        print(f"worker {worker}: gave up")
    finally:
        store.close()


def main():
    """Run lease example."""
    os.makedirs("tmp", exist_ok=True)
    with connect(DB_PATH) as store:
        store.delete(f"certificates/acme/{DOMAIN}/{DOMAIN}.crt")

    workers = [threading.Thread(target=issue_certificate, args=(i,)) for i in range(4)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()

    with connect(DB_PATH) as store:
        print(store.get(f"certificates/acme/{DOMAIN}/{DOMAIN}.crt").decode())


if __name__ == "__main__":
    main()
