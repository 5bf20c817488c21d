import logging
from argparse import ArgumentParser
from pathlib import Path

from uexports import *
from uexports.compression import METHODS


def _parse_value(template, text: str):
    width = 1 if isinstance(template, (int, float)) else len(type(template).FIELDS)
    try:
        components = [float(c) for c in text.split(',')]
    except ValueError:
        raise SystemExit(f"--set-all expects {width} number(s), got {text!r}")
    if len(components) != width:
        raise SystemExit(f"--set-all expects {width} component(s), got {len(components)}")
    if isinstance(template, int):
        return int(components[0])
    if isinstance(template, float):
        return components[0]
    return type(template)(*components)


def main(argv=None):
    parser = ArgumentParser(prog="uexports",
                            description="Inspect and edit typed views of a serialized UE export")
    parser.add_argument('--export', '-e', type=Path, required=True,
                        help='Path to the serialized export payload')
    parser.add_argument('--class', '-k', dest='export_class', required=True,
                        help='UE class of the export, e.g. ' + ', '.join(ExportFactory.class_names()[:2]))
    parser.add_argument('--compression', '-c', default='none', choices=METHODS,
                        help='Compression method of the payload (default: none)')
    parser.add_argument('--set-all', metavar='C1[,C2...]',
                        help='Overwrite every projected value, e.g. 1,0,0,1 for a color')
    parser.add_argument('--output', '-o', type=Path,
                        help='Write the (possibly edited) export to this path')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log debug output')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        export = load_export(args.export, args.export_class, compression=args.compression)
    except (ArchiveError, DecompressionError) as e:
        raise SystemExit(f"Failed to read {args.export}: {e}")
    if args.set_all and not isinstance(export, ProjectedExport):
        raise SystemExit(f"--set-all is not supported for {args.export_class} exports")

    print("Export:", export.CLASS_NAME or args.export_class)
    print("Properties:", len(export.data))
    if export.extras:
        print("Trailing bytes:", len(export.extras))

    def print_prop(prop: Property, indent: int = 0):
        prefix = ' ' * indent
        print(f"{prefix}{prop}")
        if isinstance(prop, StructProperty):
            for f in prop.fields:
                print_prop(f, indent + 4)
        elif isinstance(prop, ArrayProperty):
            if isinstance(prop.values, (bytes, bytearray)):
                print(f"{prefix}    <{len(prop)} bytes>")
            else:
                for elem in prop:
                    print_prop(elem, indent + 4)

    for prop in export.data:
        print_prop(prop)

    if isinstance(export, ProjectedExport):
        projection = export.projection
        state = f"index {projection.source_index}" if projection.present else "absent"
        print(f"{'/'.join(projection.names)} ({state}): {export.count()} value(s)")
        for i, value in enumerate(export.values):
            print(f"    [{i}] {value}")
        if args.set_all and export.count():
            export.set_all(_parse_value(export.get(0), args.set_all))
    elif isinstance(export, StringTableExport):
        table = export.table
        print(f"StringTable namespace={table.namespace!r} tagged={table.tagged_format} "
              f"entries={len(table)}")
        for key, value in table.entries.items():
            print(f"    {key} = {value}")

    if args.output:
        save_export(args.output, export)
        print("Wrote", args.output)


if __name__ == '__main__':
    main()
