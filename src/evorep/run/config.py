import configparser
import logging
import os
import re

from evorep.activations       import activations
from evorep.neural.layer      import LayerType
from evorep.neural.layer_args import LayerArgs, validate_layer_args

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Parameters:
        level: Logging level name (e.g. "DEBUG", "INFO")
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

class Config:

    @staticmethod
    def _parse_layer_type(raw_type: str) -> LayerType:
        """
        Parse a layer type given by name (e.g. "connected") or by integer tag.
        """
        raw_type = raw_type.strip()
        if raw_type.isdigit():
            return LayerType(int(raw_type))
        try:
            return LayerType[raw_type.upper()]
        except KeyError:
            raise ValueError(f"Invalid layer type '{raw_type}'") from None

    @staticmethod
    def _parse_activation(raw_function: str) -> str:
        raw_function = raw_function.strip()
        if raw_function not in activations:
            raise ValueError(f"Invalid activation function '{raw_function}'")
        return raw_function

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a Config with defaults.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a Config with default values for manual setup.
        """

        # Default config for testing/manual setup
        if config_file is None:
            self.x_dim = 1

            self.gp_num_constants = 100
            self.gp_init_depth    = 5
            self.gp_cons_min      = -1.0
            self.gp_cons_max      = 1.0
            self.gp_max_len       = 10000

            self.log_level = 'INFO'

            self.layer_args = []
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise

        # [INPUT]

        # The number of input variables presented to every representation.
        self.x_dim = get_value('INPUT', 'x_dim', int)

        # [GP]

        # The number of constants in the pool shared by all GP trees.
        self.gp_num_constants = get_value('GP', 'num_constants', int, default=100)

        # The maximum depth of a randomly grown GP tree.
        self.gp_init_depth = get_value('GP', 'init_depth', int, default=5)

        # The range from which the shared constants are drawn uniformly.
        self.gp_cons_min = get_value('GP', 'cons_min', float, default=-1.0)
        self.gp_cons_max = get_value('GP', 'cons_max', float, default=1.0)

        # The maximum length of a randomly grown GP tree; longer attempts are retried.
        self.gp_max_len = get_value('GP', 'max_len', int, default=10000)

        # [LOGGING]

        # Logging level name passed to 'setup_logging()'.
        self.log_level = get_value('LOGGING', 'log_level', str, default='INFO')

        # [LAYER_0], [LAYER_1], ...

        # One section per neural layer, ordered from the input end to the output end.
        # The first layer reads 'n_inputs' (defaults to 'x_dim').
        layer_sections = sorted((s for s in parser.sections() if re.fullmatch(r'LAYER_\d+', s)),
                                key=lambda s: int(s.split('_')[1]))
        self.layer_args = []
        for section in layer_sections:
            def layer_value(key, value_type, default):
                return get_value(section, key, value_type, default=default)

            args = LayerArgs(
                type               = self._parse_layer_type(layer_value('type', str, 'connected')),
                n_inputs           = layer_value('n_inputs', int, 0),
                n_init             = layer_value('n_init', int, 0),
                n_max              = layer_value('n_max', int, 0),
                max_neuron_grow    = layer_value('max_neuron_grow', int, 0),
                function           = self._parse_activation(layer_value('function', str, 'logistic')),
                recurrent_function = self._parse_activation(layer_value('recurrent_function', str, 'logistic')),
                height             = layer_value('height', int, 0),
                width              = layer_value('width', int, 0),
                channels           = layer_value('channels', int, 0),
                size               = layer_value('size', int, 0),
                stride             = layer_value('stride', int, 0),
                pad                = layer_value('pad', int, 0),
                eta                = layer_value('eta', float, 0.0),
                eta_min            = layer_value('eta_min', float, 0.0),
                momentum           = layer_value('momentum', float, 0.0),
                decay              = layer_value('decay', float, 0.0),
                probability        = layer_value('probability', float, 0.0),
                scale              = layer_value('scale', float, 0.0),
                evolve_weights     = layer_value('evolve_weights', bool, False),
                evolve_neurons     = layer_value('evolve_neurons', bool, False),
                evolve_functions   = layer_value('evolve_functions', bool, False),
                evolve_eta         = layer_value('evolve_eta', bool, False),
                evolve_connect     = layer_value('evolve_connect', bool, False),
                sgd_weights        = layer_value('sgd_weights', bool, False))
            self.layer_args.append(args)

        if self.layer_args:
            if self.layer_args[0].n_inputs < 1 and not self.layer_args[0].type.receives_images:
                self.layer_args[0].n_inputs = self.x_dim
            validate_layer_args(self.layer_args)
