#!/usr/bin/env python
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                          CHAINSIM LIVE DEMO                                   ║
╚══════════════════════════════════════════════════════════════════════════════╝

Interactive walkthrough of the chain simulator:
- Building and mining a chain
- How difficulty drives mining work
- Editing a block and the ripple invalidation it causes
- Tampering detection and repair
- PoW / PoS / DPoS leader selection

Run with --auto to skip the presenter pauses.
"""

import logging
import sys

from chainsim.blockchain.chain import Chain
from chainsim.blockchain.miner import Miner
from chainsim.blockchain.tamper import TamperSimulator
from chainsim.config import ChainConfig, configure_logging, expected_attempts
from chainsim.consensus.simulator import ConsensusSimulator, Mechanism


AUTO = "--auto" in sys.argv


def print_header(title):
    """Print a formatted section header"""
    print("\n" + "═" * 70)
    print(f"  {title}")
    print("═" * 70)


def print_step(step_num, description):
    """Print a numbered step"""
    print(f"\n  [{step_num}] {description}")


def pause(message="Press ENTER to continue..."):
    """Pause for presenter to explain"""
    if AUTO:
        return
    print(f"\n  [PAUSE] {message}")
    input()


def print_validation(chain):
    """Print one line per block with its validity"""
    report = chain.validate()
    for snapshot, check in zip(chain.blocks, report.checks):
        status = "[OK] VALID  " if check.valid else "[X] INVALID"
        reasons = ", ".join(issue.value for issue in check.issues)
        print(f"  Block #{snapshot.index} {status} hash={snapshot.hash[:16]}... {reasons}")
    return report


def main():
    configure_logging(logging.WARNING)

    print("\n" * 2)
    print("╔" + "═" * 68 + "╗")
    print("║" + " " * 68 + "║")
    print("║" + "           CHAINSIM - BLOCKCHAIN SIMULATOR".center(68) + "║")
    print("║" + " " * 68 + "║")
    print("╚" + "═" * 68 + "╝")

    pause("Press ENTER to begin the demonstration...")

    print_header("PART 1: BUILDING A CHAIN")

    chain = Chain(ChainConfig(difficulty=3))
    print_step("1.1", "Genesis block")
    print(f"  {chain.block(0)}")

    print_step("1.2", "Mining two transaction blocks at difficulty 3")
    for payload in ({"from": "Alice", "to": "Bob", "amount": 10},
                    {"from": "Bob", "to": "Charlie", "amount": 5}):
        report = chain.add_block(payload).value
        print(f"  Block #{chain.length - 1}: nonce={report.nonce} "
              f"attempts={report.attempt_count} time={report.elapsed_time * 1000:.1f} ms")
    print_validation(chain)

    pause()

    print_header("PART 2: DIFFICULTY VS WORK")

    miner = Miner()
    for difficulty in range(0, 5):
        report = miner.mine_payload("Hello, Blockchain!", difficulty)
        print(f"  d={difficulty}  attempts={report.attempt_count:>7}  "
              f"expected~{expected_attempts(difficulty):>7}  hash={report.final_hash[:20]}...")

    print_step("2.1", "Difficulty 8 with a 1,000 attempt cap")
    report = miner.mine_payload("Hello, Blockchain!", 8, max_attempts=1000)
    print(f"  Outcome: {report.outcome.value}, attempts: {report.attempt_count}")

    pause()

    print_header("PART 3: EDITING A BLOCK")

    chain.edit_block_payload(1, {"from": "Alice", "to": "Bob", "amount": 1000})
    print("  Block #1 amount changed to 1000, descendants relinked but unmined:")
    report = print_validation(chain)
    print(f"  Links intact: {report.links_intact}")

    print_step("3.1", "Remining from block #1")
    for mining in chain.remine_from(1).value:
        print(f"  nonce={mining.nonce} attempts={mining.attempt_count}")
    print_validation(chain)

    pause()

    print_header("PART 4: TAMPERING")

    tamper = TamperSimulator(chain)
    report = tamper.tamper(1).value
    print(f"  Stored hash:     {report.stored_hash[:32]}...")
    print(f"  Recomputed hash: {report.recomputed_hash[:32]}...")
    print(f"  Detected: {report.detected}")
    print_validation(chain)

    print_step("4.1", "Repairing (edit + remine)")
    repair = tamper.repair(1, {"from": "Alice", "to": "Bob", "amount": 10}).value
    print(f"  Restored: {repair.restored}")

    pause()

    print_header("PART 5: CONSENSUS MECHANISMS")

    simulator = ConsensusSimulator()
    for mechanism in Mechanism:
        report = simulator.run_round(mechanism).value
        metric_name = mechanism.profile.metric_name
        print(f"\n  {mechanism.label}")
        for candidate in report.candidates:
            marker = "  <= winner" if candidate is report.winner else ""
            print(f"    {candidate.id:<12} {metric_name}: {candidate.metric:>6}{marker}")
        print(f"  {report.reason}")
        print(f"  {report.explanation}")

    print("\n\n" + "═" * 70)
    print("  DEMONSTRATION COMPLETE!")
    print("═" * 70)


if __name__ == "__main__":
    main()
