"""
Core domain models, codecs and contracts for CoRIM/CoMID manifests.

Independent of transport and signing: builds, validates and serializes
concise-mid-tag documents (CBOR and JSON).
"""
