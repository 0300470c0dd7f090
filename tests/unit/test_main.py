import json
import unittest
from unittest.mock import patch, MagicMock

from core.config_loader import AppConfig, DatabaseConfig
from core.exceptions import ServiceRequestNotFoundError
from notification.dispatcher import DispatchReport
import main


def make_config() -> AppConfig:
    return AppConfig(database=DatabaseConfig(url="sqlite://"))


class TestParser(unittest.TestCase):

    def test_subcommands(self):
        parser = main.build_parser()

        args = parser.parse_args(["rescore", "12"])
        self.assertEqual(args.professional_id, 12)
        self.assertIs(args.func, main.cmd_rescore)

        args = parser.parse_args(["--config", "other.yaml", "rescore-all", "--workers", "8"])
        self.assertEqual(args.config, "other.yaml")
        self.assertEqual(args.workers, 8)

        args = parser.parse_args(["cleanup-notifications", "--days-old", "60"])
        self.assertEqual(args.days_old, 60)

    def test_command_required(self):
        with self.assertRaises(SystemExit):
            main.build_parser().parse_args([])


class TestMain(unittest.TestCase):

    @patch('main.load_config', return_value=make_config())
    @patch('main.recalculate_all_rankings', return_value=3)
    def test_rescore_all(self, mock_recalculate, _):
        with patch('builtins.print') as mock_print:
            self.assertEqual(main.main(["rescore-all", "--workers", "2"]), 0)

        config = mock_recalculate.call_args.kwargs['config']
        self.assertEqual(config.max_workers, 2)
        self.assertEqual(json.loads(mock_print.call_args[0][0]), {'completed': 3})

        session_factory = mock_recalculate.call_args.args[0]
        self.assertEqual(str(session_factory.kw['bind'].url), "sqlite://")

    @patch('main.load_config', return_value=AppConfig(database=DatabaseConfig(url="postgresql://db.internal/other")))
    @patch('main.create_db_engine')
    @patch('main.init_db')
    def test_init_db_uses_configured_database(self, mock_init_db, mock_engine, _):
        self.assertEqual(main.main(["--config", "other.yaml", "init-db"]), 0)

        mock_engine.assert_called_once_with("postgresql://db.internal/other")
        mock_init_db.assert_called_once_with(mock_engine.return_value)

    @patch('main.load_config', return_value=make_config())
    @patch('main.AppContext.build', return_value=MagicMock())
    @patch('main.dispatch_existing_request')
    def test_dispatch(self, mock_dispatch, _build, _config):
        mock_dispatch.return_value = DispatchReport(request_id=42, processed=2, persisted=1, suppressed=1)

        with patch('builtins.print') as mock_print:
            self.assertEqual(main.main(["dispatch", "42"]), 0)

        output = json.loads(mock_print.call_args[0][0])
        self.assertEqual(output['processed'], 2)
        self.assertEqual(output['suppressed'], 1)

    @patch('main.load_config', return_value=make_config())
    @patch('main.AppContext.build', return_value=MagicMock())
    @patch('main.dispatch_existing_request', side_effect=ServiceRequestNotFoundError(42))
    def test_domain_error_exit_code(self, _dispatch, _build, _config):
        self.assertEqual(main.main(["dispatch", "42"]), 1)


if __name__ == '__main__':
    unittest.main()
