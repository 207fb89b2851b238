#!/usr/bin/env python3
"""
campus_eats.py
Command line interface for the Campus Eats venue list
"""

import argparse
import sys
import logging

from api import CampusEatsAPI
from location import StaticLocationSource
from models import Position, is_valid_position

STATUS_ICONS = {
    'favorite': '❤️ ',
    'disliked': '👎',
    'normal': '  ',
}

def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )

def build_api(args, location_source=None) -> CampusEatsAPI:
    api = CampusEatsAPI(feed_url=args.feed_url, cache_path=args.cache, db_path=args.database,
                        location_source=location_source)
    result = api.refresh()
    if not result["success"]:
        print(f"❌ {result['error']}")
        api.close()
        sys.exit(1)

    if result["degraded"]:
        if result["count"]:
            print(f"⚠️  Feed unavailable ({result['condition']}), showing {result['count']} cached venues")
        else:
            print("⚠️  Feed unavailable and no cached venues - no data available")
    return api

def format_distance(meters) -> str:
    if meters is None:
        return "distance unknown"
    if meters < 1000:
        return f"{meters:.0f} m"
    return f"{meters / 1000:.1f} km"

def list_venues(args):
    """List venues, nearest first when a position is given"""
    has_position = args.latitude is not None and args.longitude is not None
    location_source = None
    if has_position:
        if not is_valid_position(Position(args.latitude, args.longitude)):
            print(f"❌ Invalid position: {args.latitude}, {args.longitude}")
            print("   Latitude must be within ±90 and longitude within ±180")
            sys.exit(1)
        location_source = StaticLocationSource(args.latitude, args.longitude)

    api = build_api(args, location_source)
    try:
        result = api.list_venues(limit=args.limit)

        if not result["venues"]:
            print("😞 No venues to show.")
            return

        print(f"\n🍽️  {result['count']} venues" + (" by distance:" if has_position else ":"))
        print("=" * 60)
        for i, venue in enumerate(result["venues"], 1):
            icon = STATUS_ICONS.get(venue['status'], '  ')
            print(f"{i:>3}. {icon} {venue['name']}")
            print(f"        🏢 {venue['building']}")
            if has_position:
                print(f"        📏 {format_distance(venue['distance_meters'])}")
    finally:
        api.close()

def show_venue(args):
    """Show details for one venue"""
    api = build_api(args)
    try:
        result = api.get_venue(args.name)
        if not result["success"]:
            print(f"❌ {result['error']}")
            if result.get("suggestions"):
                print(f"   Did you mean: {', '.join(result['suggestions'])}?")
            sys.exit(1)

        venue = result["venue"]
        print(f"\n🍽️  {venue['name']}  {STATUS_ICONS.get(venue['status'], '')}")
        print(f"🏢 {venue['building']}")
        print(f"\nDescription: {venue['description']}")
        print("\nOpening Times:")
        for line in venue['opening_times']:
            print(f"   {line}")
        if venue['amenities']:
            print(f"\n✨ Amenities: {', '.join(venue['amenities'])}")
        if venue['website']:
            print(f"\n🔗 {venue['website']}")
        if venue['latitude'] is None or venue['longitude'] is None:
            print("\n📍 Location unavailable")
    finally:
        api.close()

def toggle_venue(args):
    """Cycle a venue through normal -> favorite -> disliked"""
    api = build_api(args)
    try:
        result = api.toggle_status(args.name)
        if result.get("warning"):
            print(f"⚠️  {result['warning']}")
        icon = STATUS_ICONS.get(result['status'], '')
        print(f"✅ {result['name']} is now {result['status']} {icon}")
    finally:
        api.close()

def list_favorites(args):
    api = build_api(args)
    try:
        result = api.get_favorites()
        if not result["venues"]:
            print("No favorites yet. Use: python campus_eats.py toggle 'Venue Name'")
            return
        print(f"\n❤️  {result['count']} favorite venues:")
        for venue in result["venues"]:
            print(f"   • {venue['name']} ({venue['building']})")
    finally:
        api.close()

def system_status(args):
    """Show pipeline status"""
    api = build_api(args)
    try:
        stats = api.get_system_status()["stats"]
        print("📊 Campus Eats Status")
        print("=" * 30)
        print(f"State: {stats['state']}" + (f" ({stats['condition']})" if stats['condition'] else ""))
        print(f"Venues: {stats['venue_count']} ({stats['mappable_venues']} on the map)")
        print(f"Cache: {stats['cache_path']} " + ("✅" if stats['cache_present'] else "❌ missing"))
        counts = stats['status_counts']
        print(f"Favorites: {counts['favorite']}  Disliked: {counts['disliked']}")
        if 'feed_usage' in stats:
            usage = stats['feed_usage']
            print(f"Feed requests: {usage['total_requests']} ({usage['failed_requests']} failed)")
    finally:
        api.close()

def main():
    parser = argparse.ArgumentParser(
        description='Campus Eats - nearby campus dining venues',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python campus_eats.py list
  python campus_eats.py list --lat 53.4055 --lng -2.9660
  python campus_eats.py show "The Sphinx"
  python campus_eats.py toggle "The Sphinx"
  python campus_eats.py status
        """
    )

    parser.add_argument('--database', '-d', default=None,
                       help='Preference database path (default: campus_eats.db)')
    parser.add_argument('--cache', '-c', default=None,
                       help='Venue cache file (default: venue_cache.json)')
    parser.add_argument('--feed-url', default=None,
                       help='Override the venue feed URL')
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    list_parser = subparsers.add_parser('list', help='List venues')
    list_parser.add_argument('--lat', '--latitude', dest='latitude', type=float,
                            help='Your latitude, to rank by distance')
    list_parser.add_argument('--lng', '--longitude', dest='longitude', type=float,
                            help='Your longitude, to rank by distance')
    list_parser.add_argument('--limit', type=int, default=None,
                            help='Maximum number of venues to show')

    show_parser = subparsers.add_parser('show', help='Show venue details')
    show_parser.add_argument('name', help='Venue name')

    toggle_parser = subparsers.add_parser('toggle', help='Cycle venue status (normal/favorite/disliked)')
    toggle_parser.add_argument('name', help='Venue name')

    subparsers.add_parser('favorites', help='List favorite venues')
    subparsers.add_parser('status', help='Show pipeline status')

    args = parser.parse_args()

    setup_logging(args.verbose)

    commands = {
        'list': list_venues,
        'show': show_venue,
        'toggle': toggle_venue,
        'favorites': list_favorites,
        'status': system_status,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    handler(args)

if __name__ == "__main__":
    main()
