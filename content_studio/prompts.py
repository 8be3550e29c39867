# Prompt templates for pattern extraction, copy generation, refinement and imagery.
# Every template is filled with str.format, so literal JSON braces are doubled.

PATTERN_EXTRACTION_PROMPT = """You are an expert marketing analyst. Analyze these {content_type} examples from the {market} market with {platform} traffic source and extract key patterns that make them successful.

EXAMPLES TO ANALYZE:
{examples}

Extract patterns in the following categories:

1. **Headline Styles**: What types of headlines are used? (e.g., "question-based", "direct value prop", "contrarian", "urgency-focused")

2. **Structure Patterns**: How is the content organized? (e.g., "problem-agitate-solve", "trust signals first", "social proof stacking")

3. **Tone Characteristics**: What's the overall tone? (e.g., "urgent and aspirational", "intellectual and data-driven", "friendly and casual")

4. **CTA Strategies**: How are calls-to-action used? (e.g., "single CTA repeated", "low-friction lead magnet", "high-commitment consultation")

5. **Conversion Techniques**: What specific techniques drive conversions? (e.g., "contrarian positioning", "scarcity messaging", "audience segmentation")

6. **Social Proof Approaches**: How is credibility established? (e.g., "student testimonials", "university logos", "performance data")

Return ONLY valid JSON in this exact format:
{{
  "patterns": {{
    "headlineStyles": ["pattern 1", "pattern 2"],
    "structurePatterns": ["pattern 1", "pattern 2"],
    "toneCharacteristics": ["pattern 1", "pattern 2"],
    "ctaStrategies": ["pattern 1", "pattern 2"],
    "conversionTechniques": ["pattern 1", "pattern 2"],
    "socialProofApproaches": ["pattern 1", "pattern 2"]
  }},
  "insights": "A comprehensive paragraph summarizing why these patterns work for this market + platform combination, including specific performance insights and recommendations for future content."
}}"""

PATTERN_EXAMPLE_TEMPLATE = """Example {index}:
Headline: {headline}
Copy: {copy}
CTA: {cta}
Funnel Stage: {stage}{what_works}{notes}
---"""

# --- Text generation: system prompt sections ---

BRAND_CONTEXT_SECTION = """BRAND CONTEXT:
{introduction}

CORE VALUES:
{core_values}

TONE OF VOICE:
{tone_of_voice}

KEY MESSAGING:
{key_messaging}

TARGET PERSONAS:
{personas}"""

PERSONA_TEMPLATE = """**{name}**: {description}
Pain Points: {pain_points}
Our Solution: {solution}"""

DYNAMIC_PATTERNS_SECTION = """DYNAMIC PATTERN KNOWLEDGE ({market} Market - {platform} Platform):

This section contains patterns automatically extracted from high-performing {content_type} examples.
Apply these patterns to maximize conversion rates for this specific market and platform.

HEADLINE STYLES THAT WORK:
{headline_styles}

STRUCTURE PATTERNS:
{structure_patterns}

TONE CHARACTERISTICS:
{tone_characteristics}

CTA STRATEGIES:
{cta_strategies}

CONVERSION TECHNIQUES:
{conversion_techniques}

SOCIAL PROOF APPROACHES:
{social_proof_approaches}

AI-EXTRACTED INSIGHTS:
{insights}{manual_learnings}

CRITICAL: These patterns are derived from actual high-performing content.
Prioritize these patterns over general best practices when they conflict."""

INTERVIEWS_SECTION = """INTERVIEW TRANSCRIPTS (Use for authentic voice, don't fabricate):
{interviews}"""

BRAND_ASSETS_SECTION = """BRAND ASSET LIBRARY (extracted from uploaded files):
{asset_blocks}"""

BRAND_ASSET_BLOCK = """{label}:
{text}"""

META_INSTRUCTIONS_SECTION = """CRITICAL: The reference examples and patterns above are the standard to match. Imitate their structure, tone and specificity rather than writing generic marketing copy.
CRITICAL: Never fabricate facts, statistics, or testimonials. Use [PLACEHOLDER: description] when information is not available."""

# --- Text generation: user prompt ---

REGENERATION_FEEDBACK_BLOCK = """REGENERATION FEEDBACK (HIGHEST PRIORITY):
A previous version of this content was rejected. Address this feedback above every other instruction:
{feedback}"""

AD_COPY_OUTPUT_SPEC = """AD COPY REQUIREMENTS:
- Generate BOTH short and long versions for each variation
- Create at least 5 distinct variations
- Each variation must use:
  * A different target persona
  * A different angle (emotional, logical, social proof, urgency, etc.)
  * A different opening hook (vary between questions, statements, stories)
- Short version: ~50-100 words
- Long version: ~150-200 words{variant_note}

Return ONLY valid JSON in this format:
{{
  "variations": [
    {{
      "id": "1",
      "version": "short",
      "persona": "which persona this targets",
      "angle": "what angle/approach is used",
      "headline": "compelling headline",
      "body": "ad body copy",
      "cta": "call to action",
      "keywords": ["keyword1", "keyword2", "keyword3"]
    }},
    {{
      "id": "1",
      "version": "long",
      "persona": "same persona as short version",
      "angle": "same angle as short version",
      "headline": "compelling headline (can be same or slightly different)",
      "body": "longer ad body copy",
      "cta": "call to action",
      "keywords": ["keyword1", "keyword2", "keyword3"]
    }}
  ]
}}"""

BLOG_OUTPUT_SPEC = """BLOG POST REQUIREMENTS:
- Create a complete, SEO-optimized blog post
- Include:
  * Compelling headline (H1)
  * Meta description
  * Introduction
  * 3-5 main sections with H2 headings
  * Conclusion
  * Call to action
- Optimize for both traditional SEO and AI search
- Use natural keyword integration{length_note}

Return ONLY valid JSON in this format:
{{
  "headline": "Blog post title",
  "metaDescription": "SEO meta description",
  "content": "Full blog post with markdown formatting for headings",
  "keywords": ["primary", "secondary", "tertiary"]
}}"""

LANDING_PAGE_OUTPUT_SPEC = """LANDING PAGE REQUIREMENTS:
- Create complete landing page copy with these sections:
  * Hero (headline + subheadline)
  * Value proposition
  * Benefits (3-5 key benefits)
  * Features (if applicable)
  * Social proof section
  * Final CTA
- Conversion-focused language throughout{length_note}

Return ONLY valid JSON in this format:
{{
  "hero": {{
    "headline": "Main headline",
    "subheadline": "Supporting headline"
  }},
  "valueProposition": "Clear value prop statement",
  "benefits": ["benefit 1", "benefit 2", "benefit 3"],
  "features": ["feature 1", "feature 2"],
  "socialProof": "Social proof section copy",
  "cta": {{
    "headline": "CTA headline",
    "body": "CTA supporting text",
    "buttonText": "Button text"
  }}
}}"""

EMAIL_OUTPUT_SPEC = """EMAIL REQUIREMENTS:
- Subject line (compelling, under 60 characters)
- Preview text
- Email body with proper structure
- Clear CTA{length_note}

Return ONLY valid JSON in this format:
{{
  "subject": "Email subject line",
  "previewText": "Preview/preheader text",
  "body": "Email body with proper structure",
  "cta": "Call to action text"
}}"""

# --- Ad copy (format-detecting path) ---

AD_COPY_SYSTEM_PROMPT = """You are an expert marketing copywriter specializing in {format_label}.

BRAND GUIDELINES - {brand_name}:
Core Values: {values}
Tone of Voice: {tone_of_voice}
Key Messaging: {key_messaging}
Target Audience: {target_audience}{imagery_style}{dos_and_donts}

BRAND COLORS:
{palette}

CRITICAL: Study these successful examples carefully. Your output MUST match their tone, style, and approach:

{inspiration}

OUTPUT REQUIREMENTS:
Format: {format}
Specifications: {specs}

{output_format}

CRITICAL RULES:
1. COUNT characters/words BEFORE responding - you will be penalized for exceeding limits
2. {forbidden_rule}
3. Write like a REAL marketer, not an AI - be specific and authentic
4. Lead with benefits and transformation, not features
5. Use natural, conversational language ({tone})
6. Be concrete and specific - avoid vague corporate language
7. Borrow successful patterns from the inspiration examples above
8. Return ONLY valid JSON - no markdown code fences, no explanations, no additional text
9. ABSOLUTELY NO exclamation marks (!) in any field
10. ABSOLUTELY NO hashtags (#) in any field
11. ABSOLUTELY NO emoji in any field

TONE: {tone}
Write as if speaking to {audience}"""

AD_COPY_VARIATIONS_FORMAT = """You MUST return EXACTLY {count} DIVERSE variations in this JSON format:

{{
  "variations": [
    {{
      "headline": "headline text (max {headline_max} {headline_unit})",
      "primaryText": "primary text ({text_min}-{text_max} {text_unit})",
      "cta": "CTA text ({cta_min}-{cta_max} {cta_unit})",
      "keywords": ["keyword1", "keyword2", "keyword3"]
    }}
  ]
}}

VARIATION DIVERSITY REQUIREMENTS:
- Variation 1: Direct, straightforward approach
- Variation 2: Emotional, parent-focused angle
- Variation 3: Student-benefit focused
- Variation 4: Social proof or transformation story
- Variation 5: Urgency or opportunity-focused

Each variation must be MEANINGFULLY DIFFERENT from the others."""

AD_COPY_SINGLE_FORMAT = """Return ONLY this JSON format:

{
  "content": {
    "headline": "...",
    "body": "...",
    "sections": {}
  }
}"""

NO_INSPIRATION_FALLBACK = (
    "No inspiration examples available - write professional marketing copy based on brand guidelines above"
)

REFINE_COPY_PROMPT = """You are a marketing copy editor for the brand '{brand_name}'.
Your task is to revise a piece of marketing copy based on user feedback.

**Brand Tone of Voice:** {tone_of_voice}
**Original Copy:**
---
{original_text}
---

**User's Revision Request:** "{refinement}"

**Instructions:**
Rewrite the original copy to incorporate the user's feedback while strictly maintaining the brand's tone of voice.
If the original was a structured ad (Headline, Primary Text, CTA), maintain that structure.
Provide only the revised copy, with no extra commentary."""

# --- Imagery ---

AD_IMAGE_PROMPT = """Create a professional Facebook ad image (1200x628px) for {brand_name}.

USER REQUEST: {user_prompt}

SCENE COMPOSITION:
Setting: {setting}
Subject: {audience}
- Authentic, real people (not models or stock photos)
- Genuine emotions and natural expressions
- Documentary-style photography
Action/Moment: {action}

VISUAL STYLE:
Photography Style: {imagery_style}
Lighting: Natural, warm, authentic
Composition: Rule of thirds, clear focal point
Background: Slightly blurred for depth

BRAND REQUIREMENTS:{palette}{dos_and_donts}

TECHNICAL SPECIFICATIONS:
- Resolution: 1200x628px
- Format: Horizontal landscape (1.91:1)
- Quality: Production-ready
- Style: Professional photography, NOT AI-generated looking

AD COPY CONTEXT:
Headline: "{headline}"
CTA: "{cta}"

OUTPUT: Create an authentic, professional image that looks like real documentary photography, not stock imagery or AI art. The image should complement the ad copy and feel genuine and professional. Do not render any text, words or logos in the image."""

IMAGE_REFINEMENT_PROMPT = """An ad creative for {brand_name} uses the copy: "{text}".
The initial image needs refinement based on this feedback: "{refinement}".

**Visual Style Guidelines from {brand_name}:**
- Imagery Style: {imagery_style}{palette}{dos_and_donts}

Based on the original brief and the new feedback, generate {count} new, high-quality, photorealistic image variations. Do not include any text or logos in the image."""

IMAGE_VARIATION_ADJUSTMENTS = (
    "VARIATION ADJUSTMENT: Slightly different camera angle (10-15 degrees), maintaining same composition principles",
    "VARIATION ADJUSTMENT: Different time of day lighting (golden hour feel), same scene and subjects",
    "VARIATION ADJUSTMENT: Tighter crop focusing more on main subject, same authentic moment",
    "VARIATION ADJUSTMENT: Wider shot showing more environment context, same authentic interaction",
    "VARIATION ADJUSTMENT: Different depth of field (more background blur), emphasizing subject focus",
)

# --- Asset extraction ---

DOCUMENT_TEXT_EXTRACTION_PROMPT = """Extract all of the text from the attached document '{file_name}'.
Keep headings, lists and the reading order. Write colour codes, font names and rules exactly as printed.
Return only the extracted text, with no commentary."""
