import binascii


def format_block(data):
    """Render block bytes as zero-padded decimals, e.g. [1, 23, 255] -> '0123255'."""
    return ''.join('%02d' % b for b in bytearray(data))


# TagInfo
# INFO:     An ISO14443A tag found by InListPassiveTarget. Only lives for one poll cycle.
# Attributes:
#     uid: The UID as colon separated lowercase hex string, e.g. '04:a2:3f' (str).
#     length_uid: The UID length reported by the PN532 (int).
#     uid_dec: The UID bytes as concatenated decimals. Ambiguous, only kept for compatibility (str).
#     atqa: The two ATQA bytes (bytes).
#     sak: The SAK byte (int).
#     block: The bytes read from the configured block if the reader is set to encrypted, None otherwise.
class TagInfo(object):

    def __init__(self, uid_bytes, length_uid, atqa, sak):
        uid_bytes = bytes(bytearray(uid_bytes))
        self.uid = ':'.join('%02x' % b for b in bytearray(uid_bytes))
        self.length_uid = length_uid
        self.uid_dec = ''.join(str(b) for b in bytearray(uid_bytes))
        self.atqa = bytes(bytearray(atqa))
        self.sak = sak
        self.block = None

    @property
    def payload(self):
        """The string the reader reports for this tag: the formatted block if one was read, the decimal UID otherwise."""
        if self.block is not None:
            return format_block(self.block)
        return self.uid_dec

    def __repr__(self):
        return "TagInfo(uid={}, length_uid={}, atqa={}, sak={:#04x})".format(
            self.uid, self.length_uid, binascii.hexlify(self.atqa).decode(), self.sak)
