#!/usr/bin/env python3
"""
Utility script to visualize a saved neural network.

Usage:
    python scripts/visualize_network.py --network net.bin
    python scripts/visualize_network.py --network net.bin --output net --format svg --no-view
"""

import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from evorep import Network


def visualize_network(network, output_file='network', format='png', view=True):
    """
    Render a network's chain of layers to a file.

    Args:
        network: The network to visualize
        output_file: Output filename (without extension)
        format: Output format (png, pdf, svg, etc.)
        view: Whether to automatically open the generated file
    """
    dot = network.visualize(view=False)
    dot.format = format
    dot.render(output_file, view=view, cleanup=True)
    print(f"Network visualization saved to {output_file}.{format}")


def main():
    parser = argparse.ArgumentParser(description='Visualize a saved neural network')
    parser.add_argument('--network', required=True,
                        help='Binary file written by Network.save_file()')
    parser.add_argument('--output', default='network',
                        help='Output filename (without extension)')
    parser.add_argument('--format', default='png',
                        help='Output format (png, pdf, svg, ...)')
    parser.add_argument('--no-view', action='store_true',
                        help='Do not open the rendered file')
    parser.add_argument('--weights', action='store_true',
                        help='Also print the weights of every layer')

    args = parser.parse_args()

    network = Network.load_file(args.network)
    print(network.describe(print_weights=args.weights))
    visualize_network(network, args.output, args.format, view=not args.no_view)


if __name__ == '__main__':
    main()
