#!/usr/bin/env python3
"""Example: Quickstart for kapprover

Minimal working example: seed a store with certificate signing requests,
build an inspector policy, and let the evaluator decide on each request.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install kapprover
"""
from __future__ import annotations

import textwrap

import kapprover


def main() -> None:
    print(f"kapprover version: {kapprover.__version__}")

    # Step 1: Seed an in-memory store
    store = kapprover.InMemoryCsrStore.from_yaml_string(textwrap.dedent(
        """
        requests:
          - name: node-csr-bootstrap
            username: kubelet-bootstrap
            groups: [system:kubelet-bootstrap, system:authenticated]
          - name: node-csr-stranger
            username: mallory
            groups: [system:authenticated]
        """
    ))
    print(f"Store ready: {len(store)} requests")

    # Step 2: Build the policy and the evaluator
    pipeline = kapprover.PipelineBuilder(kapprover.default_inspector_registry()).build(
        "group=system:authenticated"
    )
    approver = kapprover.default_approver_registry().get("always")
    evaluator = kapprover.DecisionEvaluator(store, pipeline, approver=approver)
    print(f"Policy: {pipeline}")

    # Step 3: Decide
    print("\nDecisions:")
    for decision in evaluator.evaluate_all(store.list()):
        print(f"  [{decision.verdict.value.upper()}] {decision.request_name} {decision.message}")


if __name__ == "__main__":
    main()
