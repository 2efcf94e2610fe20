'''
Mercator Shmercator: reproject a Mercator world map into a better projection.

The source can be a file or a URL (fetched once, then cached).
Partial results are shown as the image is worked through; Ctrl-C cancels cleanly.
A useful start is `world.png -p robinson`.
'''

import argparse
import signal
import sys
import threading
from pathlib import Path

import requests
from alive_progress import alive_bar

from coords import add_coordinate_options
from helpers import ShmercatorError, exit
from operations import MapImage, OperationState, convert
from projections import PROJECTIONS, ProjectionConfig, lookup, slug
from reproject import YIELD_INTERVAL
from surfaces import PillowSurfaces


class BarSink:
    "Feeds operation progress to an alive_progress bar"

    def __init__(self, bar):
        self.bar = bar

    def update_progress(self, fraction):
        self.bar(fraction)

    def finished(self, state):
        self.bar.text = state.value


def projection(name: str) -> ProjectionConfig:
    "argparse type for projection names"
    try:
        return lookup(name)
    except KeyError:
        raise argparse.ArgumentTypeError(f'unknown projection {name!r}')


def paint(args):
    '''
    Load, reproject and save.
    '''
    surfaces = PillowSurfaces(user_agent=args.user_agent)
    config: ProjectionConfig = args.project

    try:
        target = MapImage(surfaces.load_image(args.source), source=args.source)
    except requests.exceptions.HTTPError as e:
        exit(10, e)
    except ShmercatorError as e:
        exit(2, e)

    interrupted = threading.Event()

    def on_chunk(operation, chunk):
        if interrupted.is_set():
            operation.abort()
        elif args.progressive:
            surfaces.export(chunk.surface, args.out)

    print(f'Projecting to {config.name}...')
    previous_handler = signal.signal(signal.SIGINT, lambda *_: interrupted.set())
    try:
        with alive_bar(manual=True, title=f'{config.name}', file=sys.stdout) as bar:
            sink = BarSink(bar)
            operation = convert(
                target, config,
                surfaces=surfaces, sink=sink, on_chunk=on_chunk,
                longitude_offset=args.centre, yield_interval=args.interval)
    except ShmercatorError as e:
        exit(2, e)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if operation.state is OperationState.ABORTED:
        exit(130, 'Cancelled.')
    if operation.state is OperationState.FAILED:
        exit(1, f'Reprojection failed: {operation.error!r}')

    print(f'Saving to: {args.out}')
    surfaces.export(target.image, args.out)


#% ARGUMENT PARSING


epilog = 'Projections available are:\n' + ', '.join(slug(name) for name in PROJECTIONS)
parser = argparse.ArgumentParser(description=__doc__, epilog=epilog)

parser.add_argument('source', type=str,
                    help='Mercator image to reproject: a path or an http(s) URL.')
parser.add_argument('--project', '-p', type=projection, required=True, metavar='PROJECTION',
                    help='Projection to reproject to, by name (eg "Winkel-Tripel" or winkel_tripel).')
parser.add_argument('--user-agent', '-u', type=str, default=None,
                    help='HTTP user agent for fetching.')
parser.add_argument('--out', '-o', default=None,
                    help='File to output result to.'
                    ' Defaults to output/<args>.png.')
parser.add_argument('--interval', '-n', type=float, default=YIELD_INTERVAL, metavar='SECONDS',
                    help='Seconds between partial results. (default: %(default)s)')
parser.add_argument('--progressive', action='store_true',
                    help='Write each partial result to the output file as it arrives.')
add_coordinate_options(parser)


def main(argv=None):
    args = parser.parse_args(argv)

    if args.out is None:
        Path('./output').mkdir(exist_ok=True)
        words = sys.argv[1:] if argv is None else argv
        args.out = 'output/' + ' '.join(words).replace('/', '_') + '.png'
    paint(args)


if __name__ == '__main__':
    main()
