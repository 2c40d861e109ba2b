"""RSA key generation, JWK conversion, and RFC 7638 thumbprints."""

import base64
import hashlib
import json
from collections.abc import Mapping
from typing import Any

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from clientauth.core.errors import InvalidInputError, UnsupportedAlgorithmError
from clientauth.crypto.types import (
    RSA_SIGNING_ALGORITHMS,
    JwkKeyPair,
    PrivateKeyMaterial,
)

RSA_KEY_SIZE = 4096
RSA_PUBLIC_EXPONENT = 65537
GENERATED_KEY_ALGORITHM = "RS512"

_REQUIRED_MEMBERS = ("kty", "n", "e")
_CRT_MEMBERS = ("p", "q", "dp", "dq", "qi")
_PUBLIC_MEMBERS = ("kty", "n", "e", "alg", "use", "kid")


def base64url_encode(raw: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = max(1, (value.bit_length() + 7) // 8)
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64url_encode(raw)


def _base64url_to_int(value: Any) -> int:
    if not isinstance(value, str) or not value:
        raise ValueError("JWK members must be non-empty base64url strings")
    padded = value + "=" * (-len(value) % 4)
    raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    return int.from_bytes(raw, byteorder="big")


def _optional_str(jwk: Mapping[str, Any], name: str) -> str | None:
    value = jwk.get(name)
    if value is None or isinstance(value, str):
        return value
    raise InvalidInputError(f"JWK member '{name}' must be a string")


def material_from_private_key(
    private_key: RSAPrivateKey,
    kid: str | None = None,
    alg: str | None = None,
    use: str | None = None,
) -> PrivateKeyMaterial:
    """Export the full RSA parameter set of a private key."""
    numbers = private_key.private_numbers()
    public = numbers.public_numbers
    return PrivateKeyMaterial(
        n=_int_to_base64url(public.n),
        e=_int_to_base64url(public.e),
        d=_int_to_base64url(numbers.d),
        p=_int_to_base64url(numbers.p),
        q=_int_to_base64url(numbers.q),
        dp=_int_to_base64url(numbers.dmp1),
        dq=_int_to_base64url(numbers.dmq1),
        qi=_int_to_base64url(numbers.iqmp),
        alg=alg,
        kid=kid,
        use=use,
    )


def material_from_jwk(jwk: Mapping[str, Any]) -> PrivateKeyMaterial:
    """Validate a parsed RSA private JWK and normalize it.

    CRT members are recovered from ``n``/``e``/``d`` when the JWK omits them.
    """
    missing = [name for name in _REQUIRED_MEMBERS if not jwk.get(name)]
    if missing:
        raise InvalidInputError(
            f"JWK is missing required members: {', '.join(missing)}"
        )
    if jwk["kty"] != "RSA":
        raise UnsupportedAlgorithmError(f"Unsupported JWK key type: {jwk['kty']}")
    alg = _optional_str(jwk, "alg")
    if alg is not None and alg not in RSA_SIGNING_ALGORITHMS:
        raise UnsupportedAlgorithmError(f"Unsupported signing algorithm: {alg}")
    if not jwk.get("d"):
        raise InvalidInputError("JWK has no private exponent; a public key cannot sign")

    try:
        n = _base64url_to_int(jwk["n"])
        e = _base64url_to_int(jwk["e"])
        d = _base64url_to_int(jwk["d"])
        if all(jwk.get(name) for name in _CRT_MEMBERS):
            p, q, dmp1, dmq1, iqmp = (
                _base64url_to_int(jwk[name]) for name in _CRT_MEMBERS
            )
        else:
            p, q = rsa.rsa_recover_prime_factors(n, e, d)
            dmp1 = rsa.rsa_crt_dmp1(d, p)
            dmq1 = rsa.rsa_crt_dmq1(d, q)
            iqmp = rsa.rsa_crt_iqmp(p, q)
        numbers = rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=dmp1,
            dmq1=dmq1,
            iqmp=iqmp,
            public_numbers=rsa.RSAPublicNumbers(e=e, n=n),
        )
        private_key = numbers.private_key()
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(
            f"JWK does not describe a valid RSA private key: {exc}"
        ) from exc

    return material_from_private_key(
        private_key,
        kid=_optional_str(jwk, "kid"),
        alg=alg,
        use=_optional_str(jwk, "use"),
    )


def private_key_from_material(material: PrivateKeyMaterial) -> RSAPrivateKey:
    """Rebuild a signing key object from normalized key material."""
    if material.kty != "RSA":
        raise UnsupportedAlgorithmError(f"Unsupported key type: {material.kty}")
    try:
        numbers = rsa.RSAPrivateNumbers(
            p=_base64url_to_int(material.p),
            q=_base64url_to_int(material.q),
            d=_base64url_to_int(material.d),
            dmp1=_base64url_to_int(material.dp),
            dmq1=_base64url_to_int(material.dq),
            iqmp=_base64url_to_int(material.qi),
            public_numbers=rsa.RSAPublicNumbers(
                e=_base64url_to_int(material.e),
                n=_base64url_to_int(material.n),
            ),
        )
        return numbers.private_key()
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Inconsistent RSA key material: {exc}") from exc


def material_to_jwk(material: PrivateKeyMaterial) -> dict[str, str]:
    """Serialize key material back to a private JWK dict."""
    return material.model_dump(exclude_none=True)


def public_jwk(material: PrivateKeyMaterial) -> dict[str, str]:
    """Return only the public members required to verify signatures."""
    return {"kty": material.kty, "n": material.n, "e": material.e}


def jwk_thumbprint(jwk: Mapping[str, Any]) -> str:
    """Compute the RFC 7638 SHA-256 thumbprint of an RSA JWK."""
    canonical = json.dumps(
        {"e": jwk["e"], "kty": jwk["kty"], "n": jwk["n"]},
        separators=(",", ":"),
        sort_keys=True,
    )
    return base64url_encode(hashlib.sha256(canonical.encode("utf-8")).digest())


def generate_rsa_jwk(
    algorithm: str = GENERATED_KEY_ALGORITHM,
    key_use: str = "sig",
    kid: str | None = None,
    key_size: int = RSA_KEY_SIZE,
) -> JwkKeyPair:
    """Generate a new RSA keypair for client assertions and DPoP."""
    if algorithm not in RSA_SIGNING_ALGORITHMS:
        raise UnsupportedAlgorithmError(f"Unsupported signing algorithm: {algorithm}")
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=key_size,
    )
    material = material_from_private_key(private_key, alg=algorithm, use=key_use)
    material = material.model_copy(
        update={"kid": kid or jwk_thumbprint(public_jwk(material))}
    )
    private = material_to_jwk(material)
    public = {name: private[name] for name in _PUBLIC_MEMBERS}
    return JwkKeyPair(public_jwk=json.dumps(public), private_jwk=json.dumps(private))
