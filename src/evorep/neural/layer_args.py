"""
Layer Arguments Module

Construction records describing a chain of neural layers, and the builder
that turns a validated list of records into a Network.

Classes:
    LayerArgs: Parameters for constructing one layer

Functions:
    validate_layer_args: Check (and normalize) a list of layer records
    layer_args_opt:      Permission flags granted by a record
    describe_layer_args: Human-readable summary of a list of records
    save_layer_args:     Write a list of records to a binary file
    load_layer_args:     Read a list of records from a binary file
    build_network:       Construct a Network from a list of records
"""

import logging
from dataclasses import dataclass, replace
from typing      import BinaryIO

from evorep.activations   import activation_ids, activation_names
from evorep.errors        import CorruptDataError
from evorep.neural.layer  import LayerOpt, LayerType, layer_class
from evorep.neural.network import Network
from evorep.utils         import binio

logger = logging.getLogger(__name__)

@dataclass
class LayerArgs:
    """
    Parameters for constructing a single layer.

    Shape parameters (channels/height/width/size/stride/pad) are used by image
    consuming variants; all other variants use 'n_inputs'. Only the first
    record's input shape is read by the builder: every later layer consumes
    its predecessor's output.
    """
    type              : LayerType = LayerType.CONNECTED
    n_inputs          : int       = 0
    n_init            : int       = 0
    n_max             : int       = 0
    max_neuron_grow   : int       = 0
    function          : str       = 'logistic'
    recurrent_function: str       = 'logistic'
    height            : int       = 0
    width             : int       = 0
    channels          : int       = 0
    size              : int       = 0
    stride            : int       = 0
    pad               : int       = 0
    eta               : float     = 0.0
    eta_min           : float     = 0.0
    momentum          : float     = 0.0
    decay             : float     = 0.0
    probability       : float     = 0.0
    scale             : float     = 0.0
    evolve_weights    : bool      = False
    evolve_neurons    : bool      = False
    evolve_functions  : bool      = False
    evolve_eta        : bool      = False
    evolve_connect    : bool      = False
    sgd_weights       : bool      = False

    @property
    def options(self) -> LayerOpt:
        return layer_args_opt(self)

    def copy(self) -> 'LayerArgs':
        return replace(self)

def layer_args_opt(args: LayerArgs) -> LayerOpt:
    """
    Get the permissions granted to a layer by its construction record.
    """
    opt = LayerOpt.NONE
    if args.evolve_eta:
        opt |= LayerOpt.EVOLVE_ETA
    if args.sgd_weights:
        opt |= LayerOpt.SGD_WEIGHTS
    if args.evolve_weights:
        opt |= LayerOpt.EVOLVE_WEIGHTS
    if args.evolve_neurons:
        opt |= LayerOpt.EVOLVE_NEURONS
    if args.evolve_functions:
        opt |= LayerOpt.EVOLVE_FUNCTIONS
    if args.evolve_connect:
        opt |= LayerOpt.EVOLVE_CONNECT
    return opt

def _validate_inputs(arg: LayerArgs) -> None:
    if arg.type in (LayerType.DROPOUT, LayerType.NOISE):
        if arg.n_inputs < 1:
            arg.n_inputs = arg.channels * arg.height * arg.width
        elif arg.channels < 1 or arg.height < 1 or arg.width < 1:
            arg.channels = 1
            arg.height   = 1
            arg.width    = arg.n_inputs
    if arg.type.receives_images:
        if arg.channels < 1:
            raise ValueError("Input channels < 1")
        if arg.height < 1:
            raise ValueError("Input height < 1")
        if arg.width < 1:
            raise ValueError("Input width < 1")
    elif arg.n_inputs < 1:
        raise ValueError("Number of inputs < 1")

def validate_layer_args(args: list[LayerArgs]) -> None:
    """
    Check a list of layer records, normalizing it in place.

    The first record must describe a valid input shape; neuron-evolving
    records must allow growth; 'n_max' is raised to at least 'n_init'.

    Raises:
        ValueError if the list is empty or a record is malformed
    """
    if not args:
        raise ValueError("Empty layer argument list")
    _validate_inputs(args[0])
    for arg in args:
        if arg.evolve_neurons and arg.max_neuron_grow < 1:
            raise ValueError("Evolving neurons but max_neuron_grow < 1")
        if arg.n_max < arg.n_init:
            arg.n_max = arg.n_init

def build_network(args: list[LayerArgs]) -> Network:
    """
    Construct a Network from a list of layer records.

    The first record becomes the input-end layer and the last record the
    output-end layer.

    Parameters:
        args: Layer records, ordered from input to output

    Returns:
        The constructed network
    """
    validate_layer_args(args)
    net      = Network()
    n_inputs = args[0].n_inputs
    for arg in args:
        try:
            cls = layer_class(arg.type)
        except CorruptDataError:
            raise ValueError(f"Layer type {arg.type.name} is not supported") from None
        layer = cls.from_args(arg, n_inputs)
        net.insert(layer, 0)
        n_inputs = layer.n_outputs
    logger.debug(f"built network of {net.n_layers} layers: {net.n_inputs} => {net.n_outputs}")
    return net

def _describe_one(arg: LayerArgs) -> str:
    s = f"type={arg.type.name.lower()}"
    if arg.type not in (LayerType.AVGPOOL, LayerType.MAXPOOL, LayerType.UPSAMPLE,
                        LayerType.DROPOUT, LayerType.NOISE, LayerType.SOFTMAX):
        s += f", activation={arg.function}"
        if arg.type == LayerType.LSTM:
            s += f", recurrent_activation={arg.recurrent_function}"

    if arg.type.receives_images:
        for name in ('height', 'width', 'channels', 'size', 'stride', 'pad'):
            if getattr(arg, name) > 0:
                s += f", {name}={getattr(arg, name)}"
    else:
        s += f", n_inputs={arg.n_inputs}"

    if arg.type in (LayerType.NOISE, LayerType.DROPOUT):
        s += f", probability={arg.probability:f}"
    if arg.type in (LayerType.NOISE, LayerType.SOFTMAX):
        s += f", scale={arg.scale:f}"
    if arg.type in (LayerType.NOISE, LayerType.DROPOUT, LayerType.SOFTMAX, LayerType.MAXPOOL):
        return s

    if arg.n_init > 0:
        s += f", n_init={arg.n_init}"
    if arg.evolve_weights:
        s += ", evolve_weights=true"
    if arg.evolve_functions:
        s += ", evolve_functions=true"
    if arg.evolve_connect:
        s += ", evolve_connect=true"
    if arg.evolve_neurons:
        s += f", evolve_neurons=true, n_max={arg.n_max}, max_neuron_grow={arg.max_neuron_grow}"
    if arg.sgd_weights:
        s += f", sgd_weights=true, eta={arg.eta:f}"
        if arg.evolve_eta:
            s += f", evolve_eta=true, eta_min={arg.eta_min:f}"
        else:
            s += ", evolve_eta=false"
        s += f", momentum={arg.momentum:f}"
        if arg.decay > 0:
            s += f", decay={arg.decay:f}"
    return s

def describe_layer_args(args: list[LayerArgs], prefix: str) -> str:
    """
    Summarize a list of layer records, e.g. "PRED_LAYER_0={type=connected, ...}".
    """
    return ", ".join(f"{prefix}_LAYER_{i}={{{_describe_one(arg)}}}" for i, arg in enumerate(args))

def save_layer_args(args: list[LayerArgs], fp: BinaryIO) -> int:
    """
    Write layer records to a binary file.

    Returns:
        The number of elements written
    """
    s = binio.write_ints(fp, [len(args)])
    for arg in args:
        s += binio.write_ints(fp, [int(arg.type), arg.n_inputs, arg.n_init, arg.n_max,
                                   arg.max_neuron_grow, activation_ids[arg.function],
                                   activation_ids[arg.recurrent_function], arg.height,
                                   arg.width, arg.channels, arg.size, arg.stride, arg.pad])
        s += binio.write_doubles(fp, [arg.eta, arg.eta_min, arg.momentum,
                                      arg.decay, arg.probability, arg.scale])
        s += binio.write_bools(fp, [arg.evolve_weights, arg.evolve_neurons, arg.evolve_functions,
                                    arg.evolve_eta, arg.evolve_connect, arg.sgd_weights])
    return s

def load_layer_args(fp: BinaryIO) -> list[LayerArgs]:
    """
    Read layer records written by 'save_layer_args'.
    """
    n = binio.read_int(fp)
    if n < 0:
        raise CorruptDataError(f"Invalid layer argument count: {n}")
    args = []
    for _ in range(n):
        ints = [int(v) for v in binio.read_ints(fp, 13)]
        reals = [float(v) for v in binio.read_doubles(fp, 6)]
        flags = [bool(v) for v in binio.read_bools(fp, 6)]
        try:
            layer_type = LayerType(ints[0])
        except ValueError:
            raise CorruptDataError(f"Unknown layer type: {ints[0]}") from None
        for code in ints[5:7]:
            if code not in activation_names:
                raise CorruptDataError(f"Unknown activation function code: {code}")
        args.append(LayerArgs(type               = layer_type,
                              n_inputs           = ints[1],
                              n_init             = ints[2],
                              n_max              = ints[3],
                              max_neuron_grow    = ints[4],
                              function           = activation_names[ints[5]],
                              recurrent_function = activation_names[ints[6]],
                              height             = ints[7],
                              width              = ints[8],
                              channels           = ints[9],
                              size               = ints[10],
                              stride             = ints[11],
                              pad                = ints[12],
                              eta                = reals[0],
                              eta_min            = reals[1],
                              momentum           = reals[2],
                              decay              = reals[3],
                              probability        = reals[4],
                              scale              = reals[5],
                              evolve_weights     = flags[0],
                              evolve_neurons     = flags[1],
                              evolve_functions   = flags[2],
                              evolve_eta         = flags[3],
                              evolve_connect     = flags[4],
                              sgd_weights        = flags[5]))
    return args
