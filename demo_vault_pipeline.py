#!/usr/bin/env python3
"""
Complete Pipeline Demo: Answers → Analysis → Vault Image → Verification

Shows the full workflow:
1. Classify a fixed set of answers
2. Export a vault PNG with the checksummed payload embedded
3. Verify the untouched image
4. Tamper with the payload and verify again
"""

from ibvault.classifier import classify, score_candidates
from ibvault.export import make_vault_image
from ibvault.payload import compute_checksum, encode_transport, payload_to_dict
from ibvault.pngmeta import insert_text_chunk, strip_text_chunks
from ibvault.verification import TEXT_KEY, verify


ANSWERS = [9, 3, 4, 9, 9, 6, 8, 6, 9, 9]


def main():
    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: Answers → Analysis → Vault Image → Verification")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Classify
    # =========================================================================
    print("\n1. CLASSIFYING...")
    analysis = classify(ANSWERS)
    for name, score in score_candidates(ANSWERS).items():
        print(f"   {score}  {name}")
    print(f"   ✓ Orientation: {analysis.orientation}")
    for tendency in analysis.tendencies:
        print(f"      - {tendency}")
    for tension in analysis.tensions:
        print(f"      ~ {tension}")

    # =========================================================================
    # STEP 2: Export
    # =========================================================================
    print("\n2. EXPORTING VAULT IMAGE...")
    image = make_vault_image(ANSWERS)
    print(f"   ✓ {image.filename} ({len(image.data)} bytes)")
    print(f"   ✓ Checksum: {image.payload.checksum}")

    # =========================================================================
    # STEP 3: Verify
    # =========================================================================
    print("\n3. VERIFYING UNTOUCHED IMAGE...")
    verdict = verify(image.data)
    print(f"   ✓ Status: {verdict.status.value}")

    # =========================================================================
    # STEP 4: Tamper
    # =========================================================================
    print("\n4. VERIFYING TAMPERED IMAGE...")
    forged = payload_to_dict(image.payload)
    forged["analysis"]["orientation"] = "Institutional Steward"
    # Recompute the checksum so only the recomputation can catch the forgery
    forged["checksum_sha256"] = compute_checksum(forged)
    tampered = insert_text_chunk(strip_text_chunks(image.data, TEXT_KEY), TEXT_KEY, encode_transport(forged))
    verdict = verify(tampered)
    print(f"   ✗ Status: {verdict.status.value}")
    for reason in verdict.reasons:
        print(f"      - {reason}")

    print("\n" + "=" * 80)
    print("PIPELINE COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
