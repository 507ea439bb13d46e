#!/usr/bin/env python3

"""
Settings file handling for progtrim.

The file is YAML with a 'progtrim: 1' marker and a 'settings' mapping.
build_settings() flattens it over the defaults into one dict.
"""

import os
import yaml
from progtrimlib.core.errors import ConfigError

#============================================

CONFIG_VERSION = 1
CONTAINER_FORMATS = ('mkv', 'mp4')

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default configuration values.
	"""
	return {
		'progtrim': CONFIG_VERSION,
		'settings': {
			'reference': 'data/black_logo.png',
			'windows': {
				'start': 90.0,
				'end': 210.0,
			},
			'parallelism': 12,
			'keep_debug': False,
			'silence': {
				'threshold_db': -80.0,
				'min_duration': 1.0,
				'audio_stream': 1,
			},
			'tools': {
				'ffmpeg': 'ffmpeg',
				'magick': 'magick',
			},
			'output_dir': './output',
			'transcode': {
				'enabled': False,
				'format': 'mkv',
				'encoder': 'libx264',
				'preset': 'medium',
				'crf': 18,
				'audio_copy': False,
			},
		},
	}

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	if isinstance(value, bool):
		return value
	if isinstance(value, int):
		return bool(value)
	if isinstance(value, str):
		normalized = value.strip().lower()
		if normalized in ("true", "yes", "1", "on"):
			return True
		if normalized in ("false", "no", "0", "off"):
			return False
	raise ConfigError(f"config {config_path}: {key_path} must be a boolean")

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise ConfigError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError as exc:
			raise ConfigError(f"config {config_path}: {key_path} must be a number") from exc
	raise ConfigError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise ConfigError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float):
		return int(value)
	if isinstance(value, str):
		try:
			return int(float(value))
		except ValueError as exc:
			raise ConfigError(f"config {config_path}: {key_path} must be an integer") from exc
	raise ConfigError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, str) and value.strip() != "":
		return value
	raise ConfigError(f"config {config_path}: {key_path} must be a non-empty string")

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	os.makedirs(os.path.dirname(config_path) or '.', exist_ok=True)
	with open(config_path, 'w', encoding='utf-8') as handle:
		handle.write(yaml.safe_dump(config, sort_keys=False))
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config dictionary.
	"""
	with open(config_path, 'r', encoding='utf-8') as handle:
		try:
			data = yaml.safe_load(handle)
		except yaml.YAMLError as exc:
			raise ConfigError(f"config {config_path}: invalid yaml: {exc}") from exc
	if not isinstance(data, dict):
		raise ConfigError("config file must be a mapping")
	if data.get('progtrim') != CONFIG_VERSION:
		raise ConfigError(f"config file must set progtrim: {CONFIG_VERSION}")
	return data

#============================================

def _section(overrides: dict, key: str, config_path: str) -> dict:
	value = overrides.get(key, {})
	if value is None:
		return {}
	if not isinstance(value, dict):
		raise ConfigError(f"config {config_path}: settings.{key} must be a mapping")
	return value

#============================================

def build_settings(config: dict = None, config_path: str = "<defaults>") -> dict:
	"""
	Normalize settings with defaults.

	Args:
		config: Raw config dictionary, or None for pure defaults.
		config_path: Config file path used in error messages.

	Returns:
		dict: Flat settings dictionary.
	"""
	settings = default_config()['settings']
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get('settings') or {}
	if not isinstance(overrides, dict):
		raise ConfigError(f"config {config_path}: settings must be a mapping")
	windows = _section(overrides, 'windows', config_path)
	silence = _section(overrides, 'silence', config_path)
	tools = _section(overrides, 'tools', config_path)
	transcode = _section(overrides, 'transcode', config_path)
	defaults = settings['transcode']
	result = {
		'reference': coerce_str(overrides.get('reference',
			settings['reference']), config_path, "settings.reference"),
		'start_window': coerce_float(windows.get('start',
			settings['windows']['start']), config_path, "settings.windows.start"),
		'end_window': coerce_float(windows.get('end',
			settings['windows']['end']), config_path, "settings.windows.end"),
		'parallelism': coerce_int(overrides.get('parallelism',
			settings['parallelism']), config_path, "settings.parallelism"),
		'keep_debug': coerce_bool(overrides.get('keep_debug',
			settings['keep_debug']), config_path, "settings.keep_debug"),
		'silence_threshold_db': coerce_float(silence.get('threshold_db',
			settings['silence']['threshold_db']), config_path,
			"settings.silence.threshold_db"),
		'silence_min_duration': coerce_float(silence.get('min_duration',
			settings['silence']['min_duration']), config_path,
			"settings.silence.min_duration"),
		'audio_stream': coerce_int(silence.get('audio_stream',
			settings['silence']['audio_stream']), config_path,
			"settings.silence.audio_stream"),
		'ffmpeg': coerce_str(tools.get('ffmpeg', settings['tools']['ffmpeg']),
			config_path, "settings.tools.ffmpeg"),
		'magick': coerce_str(tools.get('magick', settings['tools']['magick']),
			config_path, "settings.tools.magick"),
		'output_dir': coerce_str(overrides.get('output_dir',
			settings['output_dir']), config_path, "settings.output_dir"),
		'transcode': coerce_bool(transcode.get('enabled', defaults['enabled']),
			config_path, "settings.transcode.enabled"),
		'container': coerce_str(transcode.get('format', defaults['format']),
			config_path, "settings.transcode.format"),
		'encoder': coerce_str(transcode.get('encoder', defaults['encoder']),
			config_path, "settings.transcode.encoder"),
		'preset': coerce_str(transcode.get('preset', defaults['preset']),
			config_path, "settings.transcode.preset"),
		'crf': coerce_int(transcode.get('crf', defaults['crf']),
			config_path, "settings.transcode.crf"),
		'audio_copy': coerce_bool(transcode.get('audio_copy', defaults['audio_copy']),
			config_path, "settings.transcode.audio_copy"),
	}
	validate_settings(result)
	return result

#============================================

def validate_settings(settings: dict) -> None:
	if settings['start_window'] <= 0:
		raise ConfigError("start window must be positive")
	if settings['end_window'] <= 0:
		raise ConfigError("end window must be positive")
	if settings['parallelism'] < 1:
		raise ConfigError("parallelism must be at least 1")
	if settings['silence_threshold_db'] > 0:
		raise ConfigError("silence threshold must be 0 or negative dB")
	if settings['silence_min_duration'] <= 0:
		raise ConfigError("silence min_duration must be positive")
	if settings['audio_stream'] < 0:
		raise ConfigError("audio_stream must be 0 or greater")
	if settings['container'] not in CONTAINER_FORMATS:
		raise ConfigError(f"transcode format must be one of: {', '.join(CONTAINER_FORMATS)}")
	if not 0 <= settings['crf'] <= 51:
		raise ConfigError("transcode crf must be between 0 and 51")
	return
