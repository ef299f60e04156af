"""DIDComm v1 pack and unpack primitives built on libsodium."""

from collections import OrderedDict
from typing import Callable, Optional, Sequence, Tuple

import nacl.bindings
import nacl.exceptions
import nacl.utils
from marshmallow import ValidationError

from ..utils.jwe import JweEnvelope, JweRecipient, b64url, from_b64url
from .error import WalletError
from .util import b58_to_bytes, bytes_to_b58

ALG_AUTHCRYPT = "Authcrypt"
ALG_ANONCRYPT = "Anoncrypt"


def sign_pk_from_sk(secret: bytes) -> bytes:
    """Extract the verkey from a secret signing key."""
    seed_len = nacl.bindings.crypto_sign_SEEDBYTES
    return secret[seed_len:]


def add_pack_recipients(
    wrapper: JweEnvelope,
    cek: bytes,
    to_verkeys: Sequence[bytes],
    from_secret: bytes = None,
):
    """
    Assemble the recipients block of a packed message.

    Args:
        wrapper: The envelope to add recipients to
        cek: The content encryption key
        to_verkeys: Verkeys of recipients
        from_secret: Secret to use for signing keys

    """
    for target_vk in to_verkeys:
        target_pk = nacl.bindings.crypto_sign_ed25519_pk_to_curve25519(target_vk)
        if from_secret:
            sender_vk = bytes_to_b58(sign_pk_from_sk(from_secret)).encode("utf-8")
            enc_sender = nacl.bindings.crypto_box_seal(sender_vk, target_pk)
            sk = nacl.bindings.crypto_sign_ed25519_sk_to_curve25519(from_secret)

            nonce = nacl.utils.random(nacl.bindings.crypto_box_NONCEBYTES)
            enc_cek = nacl.bindings.crypto_box(cek, nonce, target_pk, sk)
            header = OrderedDict(
                [
                    ("kid", bytes_to_b58(target_vk)),
                    ("sender", b64url(enc_sender)),
                    ("iv", b64url(nonce)),
                ]
            )
        else:
            enc_cek = nacl.bindings.crypto_box_seal(cek, target_pk)
            header = {"kid": bytes_to_b58(target_vk)}
        wrapper.add_recipient(JweRecipient(encrypted_key=enc_cek, header=header))


def encrypt_plaintext(
    message: str, add_data: bytes, key: bytes
) -> Tuple[bytes, bytes, bytes]:
    """
    Encrypt the payload of a packed message.

    Returns:
        A tuple of (ciphertext, nonce, tag)

    """
    nonce = nacl.utils.random(nacl.bindings.crypto_aead_chacha20poly1305_ietf_NPUBBYTES)
    message_bin = message.encode("utf-8")
    output = nacl.bindings.crypto_aead_chacha20poly1305_ietf_encrypt(
        message_bin, add_data, nonce, key
    )
    mlen = len(message_bin)
    return output[:mlen], nonce, output[mlen:]


def decrypt_plaintext(
    ciphertext: bytes, recips_bin: bytes, nonce: bytes, key: bytes
) -> str:
    """Decrypt the payload of a packed message."""
    output = nacl.bindings.crypto_aead_chacha20poly1305_ietf_decrypt(
        ciphertext, recips_bin, nonce, key
    )
    return output.decode("utf-8")


def encode_pack_message(
    message: str, to_verkeys: Sequence[bytes], from_secret: bytes = None
) -> bytes:
    """
    Assemble a packed message for a set of recipients, optionally including the sender.

    Args:
        message: The message to pack
        to_verkeys: The verkeys to pack the message for
        from_secret: The sender secret

    Returns:
        The encoded message

    """
    if not to_verkeys:
        raise ValueError("No recipient keys provided")
    wrapper = JweEnvelope()
    cek = nacl.bindings.crypto_secretstream_xchacha20poly1305_keygen()
    add_pack_recipients(wrapper, cek, to_verkeys, from_secret)
    wrapper.set_protected(
        OrderedDict(
            [
                ("enc", "xchacha20poly1305_ietf"),
                ("typ", "JWM/1.0"),
                ("alg", ALG_AUTHCRYPT if from_secret else ALG_ANONCRYPT),
            ]
        )
    )
    ciphertext, nonce, tag = encrypt_plaintext(message, wrapper.protected_bytes, cek)
    wrapper.set_payload(ciphertext, nonce, tag)
    return wrapper.to_json().encode("utf-8")


def decode_pack_message(
    enc_message: bytes, find_key: Callable[[str], Optional[bytes]]
) -> Tuple[str, Optional[str], str]:
    """
    Decode a packed message.

    Disassemble and decrypt a packed message, returning the message content,
    verification key of the sender (if available), and verification key of the
    recipient.

    Args:
        enc_message: The encrypted message
        find_key: Function to retrieve the secret key for a recipient verkey

    Returns:
        A tuple of (message, sender_vk, recip_vk)

    Raises:
        ValueError: If the packed message is invalid, none of its recipients
            can be opened, or decryption fails

    """
    try:
        wrapper = JweEnvelope.from_json(enc_message)
    except ValidationError as err:
        raise ValueError("Invalid packed message") from err

    alg = wrapper.protected.get("alg")
    is_authcrypt = alg == ALG_AUTHCRYPT
    if not is_authcrypt and alg != ALG_ANONCRYPT:
        raise ValueError("Unsupported pack algorithm: {}".format(alg))

    recips = extract_pack_recipients(wrapper.recipients)
    payload_key, sender_vk, recip_vk = None, None, None
    for kid, recip in recips.items():
        recip_secret = find_key(kid)
        if recip_secret:
            payload_key, sender_vk = extract_payload_key(recip, recip_secret)
            recip_vk = kid
            break

    if not payload_key:
        raise ValueError(
            "No corresponding recipient key found in {}".format(tuple(recips))
        )
    if not sender_vk and is_authcrypt:
        raise ValueError("Sender public key not provided for Authcrypt message")

    try:
        message = decrypt_plaintext(
            wrapper.ciphertext + wrapper.tag,
            wrapper.protected_bytes,
            wrapper.iv,
            payload_key,
        )
    except (nacl.exceptions.CryptoError, UnicodeDecodeError) as err:
        raise ValueError("Message payload decryption failed") from err
    return message, sender_vk, recip_vk


def extract_pack_recipients(recipients: Sequence[JweRecipient]) -> dict:
    """
    Extract the pack message recipients into a dict indexed by verkey.

    Raises:
        ValueError: If the recipients block is mal-formatted

    """
    result = OrderedDict()
    for recip in recipients:
        recip_vk_b58 = recip.header.get("kid")
        if not recip_vk_b58:
            raise ValueError("Blank recipient key")
        if not isinstance(recip_vk_b58, str):
            raise ValueError("Invalid recipient key")
        if recip_vk_b58 in result:
            raise ValueError("Duplicate recipient key")

        sender_b64 = recip.header.get("sender")
        nonce_b64 = recip.header.get("iv")
        if any(
            val is not None and not isinstance(val, str)
            for val in (sender_b64, nonce_b64)
        ):
            raise ValueError("Invalid recipient header")
        if sender_b64 and not nonce_b64:
            raise ValueError("Missing iv")
        elif not sender_b64 and nonce_b64:
            raise ValueError("Unexpected iv")

        try:
            result[recip_vk_b58] = {
                "sender": from_b64url(sender_b64) if sender_b64 else None,
                "nonce": from_b64url(nonce_b64) if nonce_b64 else None,
                "key": recip.encrypted_key,
            }
        except ValidationError as err:
            raise ValueError("Invalid recipient header") from err
    return result


def extract_payload_key(sender_cek: dict, recip_secret: bytes) -> Tuple[bytes, str]:
    """
    Extract the payload key from pack recipient details.

    Returns: A tuple of the CEK and sender verkey
    """
    recip_vk = sign_pk_from_sk(recip_secret)
    recip_pk = nacl.bindings.crypto_sign_ed25519_pk_to_curve25519(recip_vk)
    recip_sk = nacl.bindings.crypto_sign_ed25519_sk_to_curve25519(recip_secret)

    try:
        if sender_cek["nonce"] and sender_cek["sender"]:
            sender_vk_bin = nacl.bindings.crypto_box_seal_open(
                sender_cek["sender"], recip_pk, recip_sk
            )
            sender_vk = sender_vk_bin.decode("utf-8")
            sender_pk = nacl.bindings.crypto_sign_ed25519_pk_to_curve25519(
                b58_to_bytes(sender_vk)
            )
            cek = nacl.bindings.crypto_box_open(
                sender_cek["key"], sender_cek["nonce"], sender_pk, recip_sk
            )
        else:
            sender_vk = None
            cek = nacl.bindings.crypto_box_seal_open(
                sender_cek["key"], recip_pk, recip_sk
            )
    except (nacl.exceptions.CryptoError, WalletError) as err:
        raise ValueError("Unable to decrypt the payload key") from err
    return cek, sender_vk
