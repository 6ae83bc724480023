from roomclimate.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["update"])
    assert args.command == "update"
    assert args.source == "all"
    assert args.overlay_config_dir is None
    assert args.now is None
    assert args.strict is False


def test_parse_args_accepts_overlay_config_dir_and_postal_code():
    args = parse_args(["resolve-station", "--overlay-config-dir", "config/live", "--postal-code", "100-0001"])
    assert args.overlay_config_dir == "config/live"
    assert args.postal_code == "100-0001"
