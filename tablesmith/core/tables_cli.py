import asyncio
import json
import logging
import sys
import httpx
from tablesmith.core import __version__ as VERSION, BaseCLI, TablesmithError, NotFoundError, MalformedIdError, \
    get_credential, format_credential, format_exception, read_config, eprint, DEFAULT_CONFIG, \
    is_external_table_id, break_external_table_id, build_external_table_id
from tablesmith.core.capabilities import ConfigCapabilityProvider
from tablesmith.core.asyncio import AsyncTablesmithServer, AsyncHTTPError

logger = logging.getLogger(__name__)


class TablesCLIException (Exception):
    """Base exception class for TablesCLI.
    """
    def __init__(self, message):
        """Initializes the exception.
        """
        super(TablesCLIException, self).__init__(message)


class UsageException (TablesCLIException):
    """Usage exception.
    """
    def __init__(self, message):
        """Initializes the exception.
        """
        super(UsageException, self).__init__(message)


class TablesCLI (BaseCLI):
    """Tablesmith table resolution command-line interface.
    """
    def __init__(self, description, epilog):
        """Initializes the CLI.
        """
        super(TablesCLI, self).__init__(description, epilog, VERSION)

        # initialized after argument parsing
        self.args = None
        self.host = None
        self.protocol = None
        self.config = None
        self.credentials = None

        self.parser.add_argument("-p", "--protocol", choices=["http", "https"], default=None,
                                 help="transport protocol: 'http' or 'https'")
        self.parser.add_argument("--tenant", metavar="<tenant>", default=None,
                                 help="Tenant whose capabilities apply to normalization.")
        self.parser.add_argument("--validate", action="store_true",
                                 help="Validate fetched documents against their JSON schemas.")
        subparsers = self.parser.add_subparsers(title='sub-commands', dest='subcmd')

        # get parser
        get_parser = subparsers.add_parser('get', help="Resolve a single table.")
        get_parser.add_argument("id", metavar="<table-id>", type=str, help="Table ID")
        get_parser.add_argument("--enrich-relationships", action="store_true",
                                help="Project related-table columns into link fields.")
        get_parser.add_argument("--enrich-views", action="store_true",
                                help="Layer v2 view overrides onto the table schema.")
        get_parser.set_defaults(func=self.tables_get)

        # many parser
        many_parser = subparsers.add_parser('many', help="Resolve several tables, omitting missing ones.")
        many_parser.add_argument("ids", metavar="<table-id>", nargs="+", help="Table IDs")
        many_parser.set_defaults(func=self.tables_many)

        # list parser
        list_parser = subparsers.add_parser('list', help="List tables.")
        origin_group = list_parser.add_mutually_exclusive_group()
        origin_group.add_argument("--internal", action="store_true", help="Only internal tables.")
        origin_group.add_argument("--external", action="store_true", help="Only external tables.")
        list_parser.set_defaults(func=self.tables_list)

        # parse-id parser
        parse_parser = subparsers.add_parser('parse-id', help="Decode a table ID without contacting a server.")
        parse_parser.add_argument("id", metavar="<table-id>", type=str, help="Table ID")
        parse_parser.set_defaults(func=self.parse_id, offline=True)

        # build-id parser
        build_parser = subparsers.add_parser('build-id', help="Encode an external table ID.")
        build_parser.add_argument("datasource", metavar="<datasource-id>", type=str, help="Datasource ID")
        build_parser.add_argument("table", metavar="<table-name>", type=str, help="Table name")
        build_parser.set_defaults(func=self.build_id, offline=True)

    @staticmethod
    def _print(payload):
        print(json.dumps(payload, indent=2))

    def _post_parser_init(self, args):
        """Shared initialization for all sub-commands.
        """
        self.config = read_config(args.config_file) if args.config_file else DEFAULT_CONFIG
        server = self.config.get("server", {})
        self.host = args.host if args.host else server.get("host")
        self.protocol = args.protocol or server.get("protocol", "https")
        if not self.host:
            raise UsageException("host not specified")

        if args.token or args.oauth2_token:
            self.credentials = format_credential(token=args.token, oauth2_token=args.oauth2_token)
        else:
            self.credentials = get_credential(self.host, args.credential_file)

    def _server(self):
        return AsyncTablesmithServer(self.protocol, self.host, self.credentials, config=self.config)

    def _resolver(self, server, args):
        return server.connect_resolver(tenant_id=args.tenant,
                                       capabilities=ConfigCapabilityProvider(self.config),
                                       validate_documents=args.validate)

    async def _get(self, args):
        async with self._server() as server:
            resolver = self._resolver(server, args)
            table = await resolver.get_table(args.id)
            if args.enrich_relationships:
                table.schema = await resolver.enrich_relationship_schema(table.schema)
            if args.enrich_views:
                table = resolver.enrich_view_schemas(table)
            return table.to_dict()

    async def _many(self, args):
        async with self._server() as server:
            tables = await self._resolver(server, args).get_tables(args.ids)
            return [t.to_dict() for t in tables]

    async def _list(self, args):
        async with self._server() as server:
            resolver = self._resolver(server, args)
            if args.internal:
                tables = await resolver.get_all_internal_tables()
            elif args.external:
                tables = await resolver.get_all_external_tables()
            else:
                tables = await resolver.get_all_tables()
            return [{"_id": t.id, "name": t.name, "sourceType": t.source_type.value, "sourceId": t.source_id}
                    for t in tables]

    def tables_get(self, args):
        """Implements the get sub-command.
        """
        self._print(asyncio.run(self._get(args)))

    def tables_many(self, args):
        """Implements the many sub-command.
        """
        self._print(asyncio.run(self._many(args)))

    def tables_list(self, args):
        """Implements the list sub-command.
        """
        self._print(asyncio.run(self._list(args)))

    def parse_id(self, args):
        """Implements the parse-id sub-command.
        """
        if is_external_table_id(args.id):
            datasource_id, table_name = break_external_table_id(args.id)
            self._print({"origin": "external", "datasourceId": datasource_id, "tableName": table_name})
        else:
            self._print({"origin": "internal", "id": args.id})

    def build_id(self, args):
        """Implements the build-id sub-command.
        """
        print(build_external_table_id(args.datasource, args.table))

    def main(self, argv=None):
        """Main routine of the CLI.
        """
        args = self.parse_cli(argv)

        try:
            if not hasattr(args, 'func'):
                self.parser.print_usage()
                return 1

            if not getattr(args, 'offline', False):
                self._post_parser_init(args)
            args.func(args)
            return 0
        except UsageException as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except MalformedIdError as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except NotFoundError as e:
            eprint("{prog} {subcmd}: Not found: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except TablesmithError as e:
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=e))
        except httpx.TransportError as e:
            eprint("{prog}: Connection error occurred: {msg}".format(prog=self.parser.prog, msg=format_exception(e)))
        except AsyncHTTPError as e:
            if e.status_code == 401:
                msg = 'Authentication required'
            elif e.status_code == 403:
                msg = 'Permission denied'
            else:
                msg = str(e)
            eprint("{prog} {subcmd}: {msg}".format(prog=self.parser.prog, subcmd=args.subcmd, msg=msg))
        except RuntimeError as e:
            logger.debug(format_exception(e), exc_info=True)
            eprint('Unexpected runtime error occurred')
        return 1


def main(argv=None):
    DESC = "Tablesmith Table Resolution Command-Line Interface"
    INFO = "Resolves internal and external tables and enriches their schemas."
    return TablesCLI(DESC, INFO).main(argv)


if __name__ == '__main__':
    sys.exit(main())
