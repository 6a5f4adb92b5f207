"""
Message catalog and translator for user-facing API messages.

Locale comes from the ``Accept-Language`` header: anything starting with
``en`` is English, anything starting with ``fr`` is French, everything else
falls back to the configured default. Templates use ``{name}`` placeholders.
"""

from __future__ import annotations

import re
from typing import Any, Optional

SUPPORTED_LOCALES = ("fr", "en")

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "auth.rate_limit": "Too many requests. Try again later.",
        "auth.token_required": "Authorization token is required.",
        "auth.token_invalid": "Invalid or expired token. Please login again.",
        "auth.session_invalid": "Invalid or expired session. Please start again.",
        "auth.account_not_found": "Account not found. Please login again.",
        "auth.not_verified": "Please verify your email before accessing this resource.",
        "register.missing_fields": "Email, password and name are required.",
        "register.name_required": "Name is required.",
        "register.already_registered": "This account is already registered. Please login.",
        "register.retry": "A registration for this email is already in progress. Please try again.",
        "register.success": "Registration successful. Check your email for the verification code.",
        "verify.code_required": "Verification code is required.",
        "verify.invalid_or_expired": "Invalid or expired verification code.",
        "verify.success": "Email verified successfully.",
        "resend.not_found": "No account found for this session.",
        "resend.already_verified": "Email already verified. Please login.",
        "resend.too_many_requests": "Too many attempts. Try again in {minutes} min.",
        "resend.success": "A new code has been sent. Check your email.",
        "login.missing_fields": "Email and password are required.",
        "login.invalid_credentials": "Invalid email or password.",
        "login.not_verified": "Email not verified. Please verify your email first.",
        "login.account_disabled": "This account is not active.",
        "login.success": "Login successful.",
        "forgot.email_required": "Email is required.",
        "forgot.not_found": "No account found with this email address.",
        "forgot.not_verified": "Email not verified. Please verify your email first.",
        "forgot.too_many_requests": "Too many attempts. Try again in {minutes} min.",
        "forgot.success": "A password reset code has been sent to your email.",
        "reset.missing_fields": "Code and new password are required.",
        "reset.passwords_not_match": "New password and confirmation do not match.",
        "reset.password_too_short": "Password must be at least {min_length} characters long.",
        "reset.invalid_or_expired": "Invalid or expired reset code.",
        "reset.success": "Password reset successful. You can now login with your new password.",
        "profile.not_found": "User not found.",
        "profile.fullname_required": "Full name is required.",
        "profile.updated": "Profile updated successfully.",
        "avatar.file_required": "Avatar file is required.",
        "avatar.invalid_type": "Avatar must be an image.",
        "avatar.too_large": "Avatar must not exceed {max_mb} MB.",
        "avatar.unavailable": "Avatar uploads are not available right now.",
        "avatar.upload_failed": "Failed to upload avatar. Please try again.",
        "avatar.updated": "Avatar updated successfully.",
        "change_password.missing_fields": "Current password, new password and confirmation are required.",
        "change_password.too_short": "New password must be at least {min_length} characters long.",
        "change_password.not_match": "New password and confirmation do not match.",
        "change_password.current_incorrect": "Current password is incorrect.",
        "change_password.same_as_old": "New password must be different from your current password.",
        "change_password.success": "Password changed successfully. Please login with your new password.",
        "email.verification.subject": "Your verification code",
        "email.verification.intro": "Use this code to verify your email address:",
        "email.reset.subject": "Reset your password",
        "email.reset.intro": "Use this code to reset your password:",
        "email.greeting": "Hello {name},",
        "email.expiry": "This code expires in {minutes} minutes.",
        "email.ignore": "If you did not request this, you can ignore this email.",
    },
    "fr": {
        "auth.rate_limit": "Trop de requêtes. Réessaie plus tard.",
        "auth.token_required": "Jeton d'autorisation requis.",
        "auth.token_invalid": "Jeton invalide ou expiré. Reconnecte-toi.",
        "auth.session_invalid": "Session invalide ou expirée. Recommence la procédure.",
        "auth.account_not_found": "Compte introuvable. Reconnecte-toi.",
        "auth.not_verified": "Vérifie ton email avant d'accéder à cette ressource.",
        "register.missing_fields": "Email, mot de passe et nom requis.",
        "register.name_required": "Le nom est requis.",
        "register.already_registered": "Compte déjà enregistré. Connecte-toi.",
        "register.retry": "Une inscription est déjà en cours pour cet email. Réessaie.",
        "register.success": "Inscription réussie. Vérifie ton email pour le code de vérification.",
        "verify.code_required": "Le code de vérification est requis.",
        "verify.invalid_or_expired": "Code invalide ou expiré.",
        "verify.success": "Email vérifié avec succès.",
        "resend.not_found": "Aucun compte trouvé pour cette session.",
        "resend.already_verified": "Email déjà vérifié. Connecte-toi.",
        "resend.too_many_requests": "Trop de tentatives. Réessaie dans {minutes} min.",
        "resend.success": "Nouveau code envoyé. Vérifie ton email.",
        "login.missing_fields": "Email et mot de passe requis.",
        "login.invalid_credentials": "Email ou mot de passe incorrect.",
        "login.not_verified": "Email non vérifié. Vérifie d'abord ton email.",
        "login.account_disabled": "Ce compte n'est pas actif.",
        "login.success": "Connexion réussie.",
        "forgot.email_required": "Email requis.",
        "forgot.not_found": "Aucun compte trouvé avec cet email.",
        "forgot.not_verified": "Email non vérifié. Vérifie d'abord ton email.",
        "forgot.too_many_requests": "Trop de tentatives. Réessaie dans {minutes} min.",
        "forgot.success": "Un code de réinitialisation a été envoyé à ton email.",
        "reset.missing_fields": "Code et nouveau mot de passe requis.",
        "reset.passwords_not_match": "Les mots de passe ne correspondent pas.",
        "reset.password_too_short": "Le mot de passe doit contenir au moins {min_length} caractères.",
        "reset.invalid_or_expired": "Code de réinitialisation invalide ou expiré.",
        "reset.success": "Mot de passe modifié avec succès. Tu peux te connecter.",
        "profile.not_found": "Utilisateur introuvable.",
        "profile.fullname_required": "Le nom complet est requis.",
        "profile.updated": "Profil mis à jour.",
        "avatar.file_required": "Le fichier de l'avatar est requis.",
        "avatar.invalid_type": "L'avatar doit être une image.",
        "avatar.too_large": "L'avatar ne doit pas dépasser {max_mb} Mo.",
        "avatar.unavailable": "L'envoi d'avatar est indisponible pour le moment.",
        "avatar.upload_failed": "Échec de l'envoi de l'avatar. Réessaie.",
        "avatar.updated": "Avatar mis à jour.",
        "change_password.missing_fields": "Mot de passe actuel, nouveau mot de passe et confirmation requis.",
        "change_password.too_short": "Le nouveau mot de passe doit contenir au moins {min_length} caractères.",
        "change_password.not_match": "Le nouveau mot de passe et la confirmation ne correspondent pas.",
        "change_password.current_incorrect": "Le mot de passe actuel est incorrect.",
        "change_password.same_as_old": "Le nouveau mot de passe doit être différent de l'ancien.",
        "change_password.success": "Mot de passe modifié. Reconnecte-toi avec ton nouveau mot de passe.",
        "email.verification.subject": "Ton code de vérification",
        "email.verification.intro": "Utilise ce code pour vérifier ton adresse email :",
        "email.reset.subject": "Réinitialise ton mot de passe",
        "email.reset.intro": "Utilise ce code pour réinitialiser ton mot de passe :",
        "email.greeting": "Bonjour {name},",
        "email.expiry": "Ce code expire dans {minutes} minutes.",
        "email.ignore": "Si tu n'es pas à l'origine de cette demande, ignore cet email.",
    },
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def normalize_locale(accept_language: Optional[str], default: str = "fr") -> str:
    """Map an ``Accept-Language`` header value to a supported locale."""
    fallback = default if default in SUPPORTED_LOCALES else "fr"
    if not accept_language:
        return fallback
    lowered = accept_language.strip().lower()
    for locale in SUPPORTED_LOCALES:
        if lowered.startswith(locale):
            return locale
    return fallback


def interpolate(template: str, params: dict[str, Any]) -> str:
    """Replace ``{name}`` placeholders; missing or None params become ``""``."""

    def _sub(match: re.Match) -> str:
        value = params.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, template)


class Translator:
    """The ``t(key)`` capability bound to one locale."""

    def __init__(self, locale: str = "fr") -> None:
        self.locale = locale if locale in MESSAGES else "fr"

    @classmethod
    def from_header(
        cls, accept_language: Optional[str], default: str = "fr"
    ) -> "Translator":
        return cls(normalize_locale(accept_language, default))

    def t(self, key: str, **params: Any) -> str:
        """Look up *key*; unknown keys render as the key itself."""
        template = MESSAGES[self.locale].get(key) or MESSAGES["en"].get(key) or key
        return interpolate(template, params) if params else template
