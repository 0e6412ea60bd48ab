"""
ChainSim - Main Entry Point
Builds a small chain, tampers with it and runs one round of each
consensus mechanism.
"""

import logging

from .blockchain.chain import Chain
from .blockchain.tamper import TamperSimulator
from .config import ChainConfig, configure_logging
from .consensus.simulator import ConsensusSimulator, Mechanism


def main():
    """Main entry point for ChainSim."""
    configure_logging(logging.INFO)

    print("=" * 50)
    print("Welcome to ChainSim")
    print("=" * 50)

    chain = Chain(ChainConfig.seeded(difficulty=2))
    chain.print_chain()

    report = TamperSimulator(chain).tamper(1).value
    print(f"\nTampered block #1 -> detected: {report.detected}")
    print(f"First invalid block: #{report.validation.first_invalid_index}")

    simulator = ConsensusSimulator()
    for mechanism in Mechanism:
        result = simulator.run_round(mechanism)
        print(f"\n{mechanism.label}: {result.value.winner.id}")
        print(f"  {result.value.reason}")


if __name__ == "__main__":
    main()
