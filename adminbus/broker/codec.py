import msgspec

from adminbus.broker.models import AdminMessage


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(AdminMessage)


def encode_message(message: AdminMessage) -> bytes:
    return _encoder.encode(message)


def decode_message(data: str | bytes) -> AdminMessage:
    return _decoder.decode(data)
