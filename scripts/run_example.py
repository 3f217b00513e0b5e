#!/usr/bin/env python3
"""
Utility script to run the regression example with either representation.

Usage:
    python scripts/run_example.py network
    python scripts/run_example.py gp --generations 500
    python scripts/run_example.py network --save net.bin
"""

import sys
import argparse
import math
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from evorep import Config, setup_logging
from examples.trial_regression1D import Trial_Regression1D


def main():
    parser = argparse.ArgumentParser(description='Run the 1D regression example')
    parser.add_argument('representation', choices=['network', 'gp'],
                        help='Representation to evolve')
    parser.add_argument('--config', default='examples/configs/config_regression1D.ini',
                        help='INI configuration file')
    parser.add_argument('--generations', type=int, default=100,
                        help='Number of generations')
    parser.add_argument('--save', default=None,
                        help='Write the final representation to this binary file')

    args = parser.parse_args()

    config = Config(args.config)
    setup_logging(config.log_level)

    trial = Trial_Regression1D(config, lambda x: math.sin(2.0 * x), -math.pi / 2, math.pi / 2)
    if args.representation == 'network':
        result = trial.run_network(num_generations=args.generations)
    else:
        result = trial.run_tree(num_generations=args.generations)

    if args.save:
        count = result.save_file(args.save)
        print(f"Saved {count} elements to {args.save}")


if __name__ == '__main__':
    main()
