"""
The commands lircd accepts from its clients. See lircd(8) for the full description of each.
"""
from abc import abstractmethod

from lircconnect.support.mixins import ValueMixin


class Command:
    """ A command that can be sent to lircd. """

    @abstractmethod
    def encode_command(self) -> list:
        """ encodes the command and its arguments as a list of string tokens.
            The first token is the command name. """
        raise NotImplementedError()

    @property
    def name(self) -> str:
        """ the command name, used to pair the command with its reply. """
        return self.encode_command()[0]

    def to_line(self) -> str:
        """ the command as a line on the wire.

        >>> Version().to_line()
        'VERSION\\n'
        """
        return " ".join(self.encode_command()) + "\n"


class SendOnce(ValueMixin, Command):
    """
    Sends the IR signal for the button once and then repeats it the given number of times.
    When repeats is 0 or below the remote's minimum, lircd uses the minimum. The upper bound
    is lircd's --repeat-max, 600 by default.
    """
    _fields = ('remote_control', 'button_name', 'repeats')

    def __init__(self, remote_control, button_name, repeats=0):
        self._init_fields(remote_control, button_name, repeats)

    def encode_command(self):
        """
        >>> SendOnce('DenonTuner', 'PROG-SCAN').encode_command()
        ['SEND_ONCE', 'DenonTuner', 'PROG-SCAN']
        >>> SendOnce('DenonTuner', 'PROG-SCAN', 3).encode_command()
        ['SEND_ONCE', 'DenonTuner', 'PROG-SCAN', '3']
        """
        if not self.repeats:
            return ["SEND_ONCE", self.remote_control, self.button_name]
        return ["SEND_ONCE", self.remote_control, self.button_name, str(int(self.repeats))]


class SendStart(ValueMixin, Command):
    """
    Starts repeating the button until a SendStop arrives, limited to repeat_max repeats.
    lircd accepts no other send commands while it is repeating.
    """
    _fields = ('remote_control', 'button_name')

    def __init__(self, remote_control, button_name):
        self._init_fields(remote_control, button_name)

    def encode_command(self):
        return ["SEND_START", self.remote_control, self.button_name]


class SendStop(ValueMixin, Command):
    """ Aborts a SendStart. """
    _fields = ('remote_control', 'button_name')

    def __init__(self, remote_control, button_name):
        self._init_fields(remote_control, button_name)

    def encode_command(self):
        return ["SEND_STOP", self.remote_control, self.button_name]


class List(ValueMixin, Command):
    """ Lists all remotes, or the buttons of one remote when remote_control is given. """
    _fields = ('remote_control',)

    def __init__(self, remote_control=None):
        self._init_fields(remote_control)

    def encode_command(self):
        """
        >>> List().encode_command()
        ['LIST']
        >>> List('DenonTuner').encode_command()
        ['LIST', 'DenonTuner']
        """
        if not self.remote_control:
            return ["LIST"]
        return ["LIST", self.remote_control]


class SetInputLog(ValueMixin, Command):
    """
    Starts logging received data to the file at path, as the printable pulse/space lines
    described in mode2(1). Without a path, logging stops.
    """
    _fields = ('path',)

    def __init__(self, path=None):
        self._init_fields(path)

    def encode_command(self):
        if not self.path:
            return ["SET_INPUTLOG"]
        return ["SET_INPUTLOG", self.path]


class DrvOption(ValueMixin, Command):
    """ Sets a driver option. The reply reports the outcome of the driver call. """
    _fields = ('key', 'value')

    def __init__(self, key, value):
        self._init_fields(key, value)

    def encode_command(self):
        return ["DRV_OPTION", self.key, self.value]


class Simulate(ValueMixin, Command):
    """
    Asks lircd to broadcast a button press to all clients as though it had been decoded.
    The data must be formatted exactly like a broadcast line. Only accepted when lircd runs
    with --allow-simulate.
    """
    _fields = ('key', 'data')

    def __init__(self, key, data):
        self._init_fields(key, data)

    def encode_command(self):
        return ["SIMULATE", self.key, self.data]


class SetTransmitters(ValueMixin, Command):
    """ Selects the transmitters to use, as a transmitter mask. See lirc(4). """
    _fields = ('transmitter_mask',)

    def __init__(self, transmitter_mask):
        self._init_fields(transmitter_mask)

    def encode_command(self):
        return ["SET_TRANSMITTERS", str(self.transmitter_mask)]


class Version(ValueMixin, Command):
    """ Asks lircd for its version. The version is the only line of the reply data. """

    def __init__(self):
        pass

    def encode_command(self):
        return ["VERSION"]
