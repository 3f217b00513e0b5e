"""
Unit tests for layer construction records and the network builder.
"""

import io
import pytest

from evorep.errors import CorruptDataError
from evorep.neural import (ConnectedLayer, DropoutLayer, LayerArgs, LayerOpt, LayerType,
                           SoftmaxLayer, build_network, describe_layer_args, layer_args_opt,
                           load_layer_args, save_layer_args, validate_layer_args)
from evorep.utils  import binio


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def classifier_args():
    """4 inputs => 6 hidden (relu, evolving) => dropout => 3 outputs => softmax."""
    return [
        LayerArgs(type=LayerType.CONNECTED, n_inputs=4, n_init=6, n_max=10, max_neuron_grow=2,
                  function='relu', evolve_neurons=True, evolve_weights=True,
                  sgd_weights=True, eta=0.01, momentum=0.9),
        LayerArgs(type=LayerType.DROPOUT, probability=0.2),
        LayerArgs(type=LayerType.CONNECTED, n_init=3, function='linear'),
        LayerArgs(type=LayerType.SOFTMAX, scale=1.0),
    ]


# ============================================================================
# Test options
# ============================================================================

class TestLayerArgsOpt:
    """Test the permission flags derived from a record."""

    def test_no_flags(self):
        assert layer_args_opt(LayerArgs()) == LayerOpt.NONE

    def test_all_flags(self):
        args = LayerArgs(evolve_weights=True, evolve_neurons=True, evolve_functions=True,
                         evolve_eta=True, evolve_connect=True, sgd_weights=True)
        assert args.options == (LayerOpt.EVOLVE_WEIGHTS | LayerOpt.EVOLVE_NEURONS |
                                LayerOpt.EVOLVE_FUNCTIONS | LayerOpt.EVOLVE_ETA |
                                LayerOpt.EVOLVE_CONNECT | LayerOpt.SGD_WEIGHTS)

    def test_copy_is_independent(self):
        args  = LayerArgs(n_inputs=2, n_init=3)
        clone = args.copy()
        clone.n_init = 7
        assert args.n_init == 3


# ============================================================================
# Test validation
# ============================================================================

class TestValidateLayerArgs:
    """Test validation and normalization."""

    def test_empty_list_raises(self):
        with pytest.raises(ValueError, match="Empty"):
            validate_layer_args([])

    def test_first_layer_without_inputs_raises(self):
        with pytest.raises(ValueError, match="inputs"):
            validate_layer_args([LayerArgs(n_init=2)])

    def test_image_layer_without_shape_raises(self):
        with pytest.raises(ValueError, match="channels"):
            validate_layer_args([LayerArgs(type=LayerType.CONVOLUTIONAL, height=4, width=4)])

    def test_evolving_neurons_without_growth_raises(self):
        args = [LayerArgs(n_inputs=2, n_init=2, evolve_neurons=True)]
        with pytest.raises(ValueError, match="max_neuron_grow"):
            validate_layer_args(args)

    def test_n_max_raised_to_n_init(self):
        args = [LayerArgs(n_inputs=2, n_init=5, n_max=1)]
        validate_layer_args(args)
        assert args[0].n_max == 5

    def test_dropout_input_from_shape(self):
        args = [LayerArgs(type=LayerType.DROPOUT, channels=2, height=3, width=4, probability=0.1)]
        validate_layer_args(args)
        assert args[0].n_inputs == 24

    def test_dropout_shape_from_inputs(self):
        args = [LayerArgs(type=LayerType.NOISE, n_inputs=5)]
        validate_layer_args(args)
        assert (args[0].channels, args[0].height, args[0].width) == (1, 1, 5)


# ============================================================================
# Test build_network
# ============================================================================

class TestBuildNetwork:
    """Test constructing a Network from records."""

    def test_layers_follow_record_order(self, classifier_args):
        net = build_network(classifier_args)
        types = [type(layer) for layer in net.layers]
        assert types == [ConnectedLayer, DropoutLayer, ConnectedLayer, SoftmaxLayer]
        assert net.n_inputs == 4
        assert net.n_outputs == 3

    def test_widths_chain(self, classifier_args):
        net = build_network(classifier_args)
        layers = net.layers
        for prev, layer in zip(layers, layers[1:]):
            assert prev.n_outputs == layer.n_inputs

    def test_options_are_applied(self, classifier_args):
        net = build_network(classifier_args)
        first = net.layers[0]
        assert first.options & LayerOpt.EVOLVE_NEURONS
        assert first.options & LayerOpt.SGD_WEIGHTS
        assert first.n_max == 10
        assert first.momentum == 0.9

    def test_built_network_propagates(self, classifier_args):
        net = build_network(classifier_args)
        out = net.propagate([0.1, 0.2, 0.3, 0.4])
        assert out.sum() == pytest.approx(1.0)

    def test_unsupported_variant_raises(self):
        args = [LayerArgs(n_inputs=2, n_init=2),
                LayerArgs(type=LayerType.RECURRENT, n_init=2)]
        with pytest.raises(ValueError, match="not supported"):
            build_network(args)


# ============================================================================
# Test describe
# ============================================================================

class TestDescribeLayerArgs:
    """Test the textual summary."""

    def test_prefix_and_index(self, classifier_args):
        text = describe_layer_args(classifier_args, "PRED")
        assert text.startswith("PRED_LAYER_0={type=connected, activation=relu, n_inputs=4")
        assert "PRED_LAYER_1={type=dropout" in text
        assert "PRED_LAYER_3={type=softmax" in text

    def test_evolution_settings_listed(self, classifier_args):
        text = describe_layer_args(classifier_args[:1], "PRED")
        assert "evolve_neurons=true, n_max=10, max_neuron_grow=2" in text
        assert "sgd_weights=true" in text
        assert "evolve_eta=false" in text

    def test_weightless_layers_omit_activation(self, classifier_args):
        text = describe_layer_args(classifier_args[1:2], "X")
        assert "activation" not in text
        assert "probability=0.200000" in text


# ============================================================================
# Test persistence
# ============================================================================

class TestLayerArgsPersistence:
    """Test binary persistence of records."""

    def test_round_trip(self, classifier_args):
        fp = io.BytesIO()
        s = save_layer_args(classifier_args, fp)
        assert s == 1 + 4 * (13 + 6 + 6)
        fp.seek(0)
        assert load_layer_args(fp) == classifier_args

    def test_empty_list_round_trip(self):
        fp = io.BytesIO()
        save_layer_args([], fp)
        fp.seek(0)
        assert load_layer_args(fp) == []

    def test_negative_count_raises(self):
        fp = io.BytesIO()
        binio.write_ints(fp, [-1])
        fp.seek(0)
        with pytest.raises(CorruptDataError):
            load_layer_args(fp)

    def test_unknown_type_raises(self):
        fp = io.BytesIO()
        save_layer_args([LayerArgs(n_inputs=1, n_init=1)], fp)
        data = bytearray(fp.getvalue())
        data[4:8] = (42).to_bytes(4, 'little')
        with pytest.raises(CorruptDataError, match="layer type"):
            load_layer_args(io.BytesIO(bytes(data)))
