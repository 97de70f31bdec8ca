# -*- coding: utf-8 -*-
"""
Emergency scripts shown instead of a model reply (PT-BR).

Content only. Edit the text freely; keep one entry per RiskType plus the
generic fallback. Contacts: CVV 188 (24h, free, confidential), SAMU 192,
Polícia 190.
"""

from __future__ import annotations

from typing import Dict

SUICIDAL_IDEATION = """🚨 **Estou aqui com você.**

O que você está sentindo é real e muito difícil. Você não precisa passar por isso sozinho(a).

**Agora, por favor:**
1. 📞 **Ligue para o CVV: 188** (24h, gratuito, sigiloso)
2. Ou acesse **cvv.org.br** para conversar por chat
3. Se estiver em perigo imediato, ligue **192 (SAMU)**

**Enquanto isso, vamos fazer algo juntos:**
- Afaste-se de qualquer coisa que possa te machucar (remédios, objetos cortantes)
- Avise alguém próximo de você
- Coloque os dois pés no chão
- Respire fundo: 4 segundos inspirando, 7 segurando, 8 soltando
- Olhe ao redor e me diga 3 coisas que você consegue ver

Crises passam. Estou aqui. Você não está sozinho(a)."""

SELF_HARM = """🚨 **Ei, estou aqui.**

Você merece cuidado, não dor. O que você está sentindo é válido.

**Vamos fazer uma pausa juntos:**
1. Se tiver algo que possa te machucar por perto, pode se afastar dele?
2. Coloque as mãos em água fria ou segure um gelo. A sensação intensa ajuda a atravessar o impulso
3. Respire comigo: inspira... segura... solta...

**Se precisar conversar agora:**
📞 **CVV: 188** (24h, gratuito, sigiloso)
📞 **SAMU: 192** se você já se machucou

Me conta: onde você está agora? Está em um lugar seguro?"""

VIOLENCE = """🚨 **Vamos pausar um segundo.**

O que você está sentindo é intenso. Raiva assim queima por dentro.

**Antes de qualquer coisa:**
1. Se afaste da situação ou da pessoa, se possível
2. Faça 10 respirações profundas, bem lentas (inspire 4s, expire 6s)
3. Aperte forte uma almofada ou toalha

**Se você ou alguém está em perigo:**
📞 **190 (Polícia)** ou **192 (SAMU)**

**Para conversar:**
📞 **CVV: 188** (24h, gratuito, sigiloso)

Pensamentos assim não fazem de você uma má pessoa. Me conta: o que aconteceu pra você chegar nesse ponto?"""

SUBSTANCE_CRISIS = """🚨 **Estou preocupado(a) com você.**

**Se você usou algo e está se sentindo mal:**
📞 **SAMU: 192**, agora mesmo

**Se está em crise ou abstinência:**
1. Não fique sozinho(a) e não use sozinho(a)
2. Não misture substâncias (remédios, álcool, drogas)
3. Beba água
4. Sente ou deite em um lugar seguro

**Para conversar:**
📞 **CVV: 188** (24h, gratuito, sigiloso)
📞 **CAPS AD** da sua cidade (atendimento gratuito, não precisa parar de usar para buscar ajuda)

Me conta: como você está fisicamente agora? Consegue descrever?"""

PANIC_ATTACK = """🚨 **Ei, estou aqui. Isso vai passar.**

Eu sei que parece que não, mas vai. Vamos fazer isso juntos.

**Agora mesmo:**
1. **Pés no chão**: sinta o chão te segurando
2. **Respira comigo:**
   - Inspira contando 1... 2... 3... 4...
   - Segura 1... 2... 3... 4...
   - Solta devagar 1... 2... 3... 4... 5... 6...
3. **5 coisas:** me diz 5 coisas que você consegue ver ao seu redor

Você não está morrendo. É o seu corpo em modo de alerta. E vai passar.

📞 Se não melhorar em 10 minutos: **CVV 188** ou **SAMU 192**

Continua respirando comigo. Estou aqui."""

SEVERE_DISTRESS = """🚨 **Eu te escuto. Está muito pesado.**

Você não precisa resolver nada agora. Só precisa passar esse momento.

**Vamos fazer uma coisa de cada vez:**
1. Onde você está? Sente em algum lugar.
2. Coloca a mão no peito. Sinta seu coração.
3. Respira fundo e devagar, 3 vezes.

**Se precisar de alguém agora:**
📞 **CVV: 188** (24h, gratuito, sigiloso)

Você chegou até aqui. Isso já é muito.
Me conta mais sobre o que está acontecendo."""

GENERIC = """🚨 **Estou aqui com você.**

Parece que você está passando por algo muito difícil.

**Se precisar de ajuda imediata:**
📞 **CVV: 188** (24h, gratuito, sigiloso)
📞 **SAMU: 192** (emergências médicas)

**Vamos respirar juntos:**
- Inspira... segura... solta...
- De novo: inspira... segura... solta...

Me conta o que está acontecendo. Estou ouvindo."""

SCRIPTS: Dict[str, str] = {
    "suicidal_ideation": SUICIDAL_IDEATION,
    "self_harm": SELF_HARM,
    "violence": VIOLENCE,
    "substance_crisis": SUBSTANCE_CRISIS,
    "panic_attack": PANIC_ATTACK,
    "severe_distress": SEVERE_DISTRESS,
}
