#!/usr/bin/env python3
"""
Configuration system for the chatbot command framework
Supports YAML files, CLI overrides, and programmatic access
"""

import yaml
import argparse
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from copy import deepcopy


@dataclass
class DispatchConfig:
	"""Command dispatch configuration"""
	prefix: str = "!"    # messages must start with this to be commands

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary for YAML serialization"""
		return {
			'prefix': self.prefix,
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'DispatchConfig':
		"""Create from dictionary (YAML loading)"""
		return cls(
			prefix=str(data.get('prefix', '!')),
		)


@dataclass
class ConsoleConfig:
	"""Console messages logging level configuration"""
	verbose: bool = False
	quiet: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return {
			'verbose': self.verbose,
			'quiet': self.quiet,
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'ConsoleConfig':
		return cls(
			verbose=bool(data.get('verbose', False)),
			quiet=bool(data.get('quiet', False)),
		)


@dataclass
class BotConfig:
	"""Complete configuration for a chatbot"""
	name: str = "chatbot"

	dispatch: DispatchConfig = field(default_factory=DispatchConfig)
	console: ConsoleConfig = field(default_factory=ConsoleConfig)

	# Metadata
	config_version: str = "1.0"
	description: str = "Chatbot command configuration"

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary for YAML serialization"""
		return {
			'config_version': self.config_version,
			'description': self.description,
			'bot': {
				'name': self.name,
			},
			'dispatch': self.dispatch.to_dict(),
			'console': self.console.to_dict(),
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'BotConfig':
		"""Create from dictionary (YAML loading)"""
		config = cls()

		if 'config_version' in data:
			config.config_version = str(data['config_version'])
		if 'description' in data:
			config.description = str(data['description'])

		bot_data = data.get('bot')
		if isinstance(bot_data, dict) and 'name' in bot_data:
			config.name = str(bot_data['name'])

		if isinstance(data.get('dispatch'), dict):
			config.dispatch = DispatchConfig.from_dict(data['dispatch'])
		if isinstance(data.get('console'), dict):
			config.console = ConsoleConfig.from_dict(data['console'])

		return config


class ConfigurationManager:
	"""
	Manages configuration loading, merging, and validation
	"""

	def __init__(self):
		self.config = BotConfig()
		self.config_file_path: Optional[Path] = None

		self.logger = logging.getLogger(__name__)

		# Standard config file locations (in order of preference)
		self.config_search_paths = [
			Path.cwd() / "chatbot.yaml",  # Current directory
			Path.cwd() / "config" / "chatbot.yaml",  # Config subdirectory
			Path.home() / ".config" / "chatbot" / "config.yaml",  # User config
			Path("/etc/chatbot/config.yaml"),  # System config (Linux)
		]

	def load_config(self, config_file: Optional[str] = None) -> BotConfig:
		"""
		Load configuration from file with fallback chain

		Args:
			config_file: Specific config file path, or None for auto-discovery

		Returns:
			Loaded configuration object (defaults when nothing was found)
		"""
		if config_file:
			config_path = Path(config_file)
			if config_path.exists():
				self.config = self._load_yaml_file(config_path)
				self.config_file_path = config_path
				self.logger.info(f"Loaded config from: {config_path}")
			else:
				self.logger.warning(f"Config file not found: {config_path}")
				self.logger.info("Using default configuration")
		else:
			for path in self.config_search_paths:
				if path.exists():
					self.config = self._load_yaml_file(path)
					self.config_file_path = path
					self.logger.info(f"Auto-discovered config: {path}")
					break
			else:
				self.logger.info("No config file found, using defaults")

		return self.config

	def _load_yaml_file(self, file_path: Path) -> BotConfig:
		"""Load configuration from YAML file"""
		try:
			with open(file_path, 'r', encoding='utf-8') as f:
				yaml_data = yaml.safe_load(f) or {}
		except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
			self.logger.error(f"Error loading config file {file_path}: {e}")
			return BotConfig()

		if not isinstance(yaml_data, dict):
			self.logger.error(f"Config file {file_path} does not contain a mapping")
			return BotConfig()

		return BotConfig.from_dict(yaml_data)

	def merge_cli_args(self, args: argparse.Namespace) -> BotConfig:
		"""
		Merge CLI arguments into configuration (CLI takes precedence)

		Args:
			args: Parsed command line arguments

		Returns:
			Updated configuration
		"""
		if getattr(args, 'name', None):
			self.config.name = args.name
		if getattr(args, 'prefix', None) is not None:
			self.config.dispatch.prefix = args.prefix
		if getattr(args, 'verbose', False):
			self.config.console.verbose = True
		if getattr(args, 'quiet', False):
			self.config.console.quiet = True

		return self.config

	def save_config(self, file_path: Optional[str] = None) -> bool:
		"""
		Save current configuration to YAML file

		Args:
			file_path: Target file path, or None to use loaded file path

		Returns:
			True if saved successfully
		"""
		if file_path:
			target_path = Path(file_path)
		elif self.config_file_path:
			target_path = self.config_file_path
		else:
			target_path = Path("chatbot.yaml")

		try:
			target_path.parent.mkdir(parents=True, exist_ok=True)
			with open(target_path, 'w', encoding='utf-8') as f:
				f.write("# Chatbot Command Configuration\n")
				f.write(f"# Version: {self.config.config_version}\n\n")
				yaml.dump(self.config.to_dict(), f,
						  default_flow_style=False,
						  sort_keys=False,
						  allow_unicode=True,
						  indent=2)
		except OSError as e:
			self.logger.error(f"Error saving config to {target_path}: {e}")
			return False

		self.logger.info(f"Configuration saved to: {target_path}")
		return True

	def create_sample_config(self, file_path: str = "chatbot_sample.yaml") -> bool:
		"""Create a sample configuration file with comments"""
		try:
			with open(file_path, 'w', encoding='utf-8') as f:
				f.write(self._generate_sample_yaml())
		except OSError as e:
			self.logger.error(f"Error creating sample config: {e}")
			return False

		self.logger.info(f"Sample configuration created: {file_path}")
		return True

	def _generate_sample_yaml(self) -> str:
		"""Generate sample YAML with comments"""
		return """# Chatbot Command Configuration File

# =============================================================================
# BOT SETTINGS
# =============================================================================
bot:
  name: "chatbot"                 # Display name used in logs

# =============================================================================
# DISPATCH SETTINGS
# =============================================================================
dispatch:
  prefix: "!"                     # Messages starting with this are commands
                                  # Must not contain spaces

# =============================================================================
# CONSOLE MESSAGES LOGGING LEVEL
# =============================================================================
console:
  verbose: false                  # Verbose output (debug logging)
  quiet: false                    # Quiet mode (warnings and errors only)

# =============================================================================
# CONFIGURATION METADATA
# =============================================================================
config_version: "1.0"
description: "Chatbot command configuration"
"""

	def validate_config(self) -> tuple[bool, list[str]]:
		"""
		Validate configuration for common issues

		Returns:
			(is_valid, list_of_errors)
		"""
		errors = []

		if not self.config.name.strip():
			errors.append("Bot name must be set")

		prefix = self.config.dispatch.prefix
		if not prefix:
			errors.append("Command prefix must not be empty")
		elif any(c.isspace() for c in prefix):
			errors.append(f"Command prefix must not contain whitespace: {prefix!r}")

		if self.config.console.verbose and self.config.console.quiet:
			errors.append("verbose and quiet cannot both be enabled")

		return len(errors) == 0, errors

	def get_config(self) -> BotConfig:
		"""Get current configuration"""
		return deepcopy(self.config)


def configure_logging(config: BotConfig):
	"""Set up root logging based on console settings"""
	if config.console.verbose:
		logging.basicConfig(level=logging.DEBUG, format='🐛 %(name)s: %(message)s')
	elif config.console.quiet:
		logging.basicConfig(level=logging.WARNING, format='⚠️  %(message)s')
	else:
		logging.basicConfig(level=logging.INFO, format='ℹ️  %(message)s')


def create_argument_parser():
	"""Argument parser for chatbot processes"""
	parser = argparse.ArgumentParser(
		description='Chatbot command system',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  %(prog)s                                 # Use defaults or discovered config
  %(prog)s --prefix ?                      # Commands look like ?roll 20
  %(prog)s -c my_config.yaml               # Use specific config file
  %(prog)s --create-config sample.yaml     # Create sample config file

Configuration:
  Configuration is loaded in this order (later overrides earlier):
  1. Built-in defaults
  2. Configuration file (YAML)
  3. Command line arguments

  Config file search order:
  - chatbot.yaml (current directory)
  - config/chatbot.yaml
  - ~/.config/chatbot/config.yaml
  - /etc/chatbot/config.yaml
		"""
	)

	# Configuration file handling
	config_group = parser.add_argument_group('Configuration')
	config_group.add_argument(
		'-c', '--config',
		type=str,
		help='Configuration file path (YAML format)'
	)
	config_group.add_argument(
		'--create-config',
		type=str,
		metavar='FILE',
		help='Create sample configuration file and exit'
	)
	config_group.add_argument(
		'--save-config',
		type=str,
		metavar='FILE',
		help='Save current configuration to file'
	)

	# Bot settings
	bot_group = parser.add_argument_group('Bot Settings')
	bot_group.add_argument(
		'--name',
		type=str,
		help='Bot display name'
	)
	bot_group.add_argument(
		'--prefix',
		type=str,
		help='Command prefix (default: !)'
	)

	# Console settings
	console_group = parser.add_argument_group('Console')
	console_group.add_argument(
		'-v', '--verbose',
		action='store_true',
		help='Verbose (debug) logging'
	)
	console_group.add_argument(
		'-q', '--quiet',
		action='store_true',
		help='Only log warnings and errors'
	)

	return parser


def setup_configuration(argv=None) -> tuple[Optional[BotConfig], bool, Optional[ConfigurationManager]]:
	"""
	Setup configuration system with CLI integration

	Args:
		argv: Command line arguments (None for sys.argv)

	Returns:
		(config_object, should_exit, config_manager)
	"""
	parser = create_argument_parser()
	args = parser.parse_args(argv)

	manager = ConfigurationManager()

	# Handle special commands first
	if args.create_config:
		manager.create_sample_config(args.create_config)
		return None, True, None

	manager.load_config(args.config)
	config = manager.merge_cli_args(args)

	is_valid, errors = manager.validate_config()
	if not is_valid:
		for error in errors:
			manager.logger.error(f"Configuration error: {error}")
		return config, True, manager

	if args.save_config:
		manager.save_config(args.save_config)

	return config, False, manager
